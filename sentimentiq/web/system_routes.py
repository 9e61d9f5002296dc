"""
System routes: service info, health check, provider diagnostics and
the provider connection test.
"""

import logging

from flask import Blueprint, current_app, jsonify

from sentimentiq import __version__
from sentimentiq.core.models import ALL_FEATURES
from sentimentiq.utils.time_utils import isoformat, utcnow

logger = logging.getLogger("web.system")

system_bp = Blueprint("system", __name__)

RECOMMENDATIONS = [
    "Ensure your Azure Language resource is deployed and active",
    'Use Key 1 or Key 2 from the "Keys and Endpoint" section in Azure portal',
    "Make sure the endpoint URL is exactly as shown in Azure portal",
    "Verify your Azure subscription is active and the resource has not been suspended",
]


def _feature_names():
    return [f.display_name for f in ALL_FEATURES]


@system_bp.route("/", methods=["GET"])
def index():
    """API information."""
    provider = current_app.orchestrator.provider
    return jsonify({
        "name": "SentimentIQ Pro - Advanced Text Analytics API",
        "version": __version__,
        "description": "Comprehensive text analysis platform powered by a cloud language provider",
        "status": "running",
        "features": _feature_names(),
        "endpoints": {
            "health": "GET /health",
            "analyze": "POST /api/analyze-text",
            "sentiment": "POST /api/analyze-sentiment",
            "keyPhrases": "POST /api/extract-key-phrases",
            "entities": "POST /api/recognize-entities",
            "summarize": "POST /api/summarize-text",
            "detectLanguage": "POST /api/detect-language",
            "testProvider": "GET /api/test-provider",
            "diagnostics": "GET /api/diagnostics",
            "history": "GET /api/history",
        },
        "provider": provider.name,
        "provider_configured": provider.is_configured,
        "timestamp": isoformat(utcnow()),
    })


@system_bp.route("/health", methods=["GET"])
def health_check():
    return jsonify({
        "status": "OK",
        "provider_configured": current_app.orchestrator.provider.is_configured,
        "timestamp": isoformat(utcnow()),
    })


@system_bp.route("/api/diagnostics", methods=["GET"])
def diagnostics():
    orchestrator = current_app.orchestrator
    return jsonify({
        "provider": orchestrator.provider_diagnostics(),
        "limits": {
            "comprehensiveMaxChars": orchestrator.limits.comprehensive_max_chars,
            "singleMaxChars": orchestrator.limits.single_max_chars,
            "summaryMinChars": orchestrator.limits.summary_min_chars,
        },
        "enabled_features": [f.value for f in ALL_FEATURES if orchestrator.gate.is_enabled(f)],
        "available_features": _feature_names(),
        "recommendations": RECOMMENDATIONS,
    })


@system_bp.route("/api/test-provider", methods=["GET"])
def test_provider():
    """Run a sentiment call on a fixed sentence to confirm connectivity."""
    orchestrator = current_app.orchestrator
    logger.info("Testing analysis provider connection")
    result = orchestrator.check_provider()
    return jsonify({
        "status": "success",
        "message": f"{orchestrator.provider.name} connection is working",
        "test_result": {
            "sentiment": result.sentiment,
            "confidence": result.confidence_scores.to_dict(),
        },
        "provider": orchestrator.provider_diagnostics(),
    })
