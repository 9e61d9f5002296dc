"""
Analysis routes: the comprehensive endpoint and the five single-feature
endpoints. Validation and provider errors are raised to the app's error
handlers, which turn them into JSON error bodies.
"""

import logging
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request

from sentimentiq.core.models import FeatureKind
from sentimentiq.web.identity import current_identity

logger = logging.getLogger("web.analysis")

analysis_bp = Blueprint("analysis", __name__)


def _json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


@analysis_bp.route("/api/analyze-text", methods=["POST"])
def analyze_text():
    """Comprehensive analysis. Body: {"text": str, "features"?: [str]}"""
    body = _json_body()
    identity = current_identity()
    logger.info(f"Comprehensive analysis request (tier={identity.tier.value})")

    result = current_app.orchestrator.analyze_comprehensive(
        body.get("text"),
        body.get("features"),
        tier=identity.tier,
        user_id=identity.user_id,
    )
    return jsonify(result.to_dict())


def _single_feature_view(feature: FeatureKind):
    def view():
        body = _json_body()
        identity = current_identity()
        logger.info(f"{feature.display_name} request (tier={identity.tier.value})")
        payload = current_app.orchestrator.analyze_feature(
            feature, body.get("text"), tier=identity.tier, user_id=identity.user_id
        )
        return jsonify(payload.to_dict())

    view.__name__ = f"analyze_{feature.value}"
    view.__doc__ = f"{feature.display_name}. Body: {{\"text\": str}}"
    return view


SINGLE_FEATURE_ROUTES = {
    "/api/analyze-sentiment": FeatureKind.SENTIMENT,
    "/api/extract-key-phrases": FeatureKind.KEY_PHRASES,
    "/api/recognize-entities": FeatureKind.ENTITIES,
    "/api/summarize-text": FeatureKind.SUMMARY,
    "/api/detect-language": FeatureKind.LANGUAGE,
}

for _rule, _feature in SINGLE_FEATURE_ROUTES.items():
    analysis_bp.add_url_rule(_rule, view_func=_single_feature_view(_feature), methods=["POST"])
