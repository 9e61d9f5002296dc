"""
Flask application factory.

Services are built once per app and attached to it (app.orchestrator,
app.event_log); blueprints reach them through current_app.
"""

import logging
import time
from typing import Any, Dict, Optional

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from sentimentiq.core.orchestrator import AnalysisOrchestrator, create_orchestrator
from sentimentiq.monitoring.event_log import EventLog, create_event_log
from sentimentiq.utils.config import load_config
from sentimentiq.utils.errors import SentimentIQError
from sentimentiq.utils.logging import create_logger_with_context
from sentimentiq.web.admin_routes import admin_bp
from sentimentiq.web.analysis_routes import analysis_bp
from sentimentiq.web.history_routes import history_bp
from sentimentiq.web.identity import current_identity
from sentimentiq.web.responses import ErrorResponse, error_response
from sentimentiq.web.system_routes import system_bp

logger = logging.getLogger("web.app")


def create_app(
    config: Optional[Dict[str, Any]] = None,
    orchestrator: Optional[AnalysisOrchestrator] = None,
    event_log: Optional[EventLog] = None,
) -> Flask:
    """
    Create the HTTP application.

    Args:
        config: Full configuration dict; loaded from config.yaml if omitted
        orchestrator: Pre-built orchestrator (tests inject one with a stub provider)
        event_log: Shared event log; defaults to the orchestrator's

    Returns:
        Flask: Configured application
    """
    if config is None:
        config = load_config()

    app = Flask(__name__)
    app.json.sort_keys = False
    app.config["ADMIN_TOKEN"] = (config.get("admin") or {}).get("token")
    auth_config = config.get("auth") or {}
    app.config["JWT_SECRET"] = auth_config.get("jwt_secret")
    app.config["JWT_ALGORITHMS"] = auth_config.get("algorithms") or ["HS256"]
    app.sentimentiq_config = config

    if not app.config["JWT_SECRET"]:
        logger.warning("No JWT secret configured; every caller is treated as guest")

    server_config = config.get("server") or {}
    CORS(app, origins=server_config.get("cors_origins", ["http://localhost:5173"]))

    # --- Services ---
    if event_log is None:
        event_log = (
            orchestrator.events if orchestrator is not None
            else create_event_log(config.get("monitoring", {}))
        )
    if orchestrator is None:
        orchestrator = create_orchestrator(config, event_log=event_log)
    app.event_log = event_log
    app.orchestrator = orchestrator

    if not orchestrator.provider.is_configured:
        logger.warning(
            f"Provider '{orchestrator.provider.name}' is not configured; "
            "analysis endpoints will answer 503"
        )

    # --- Routes ---
    app.register_blueprint(system_bp)
    app.register_blueprint(analysis_bp)
    app.register_blueprint(history_bp)
    app.register_blueprint(admin_bp)

    _register_request_hooks(app)
    _register_error_handlers(app)

    logger.info("SentimentIQ app created")
    return app


def _register_request_hooks(app: Flask) -> None:
    @app.before_request
    def start_request():
        identity = current_identity()
        g.started = time.time()
        g.request_logger = create_logger_with_context(
            "web.request",
            {
                "method": request.method,
                "path": request.path,
                "tier": identity.tier.value,
                "user_id": identity.user_id,
            },
        )

    @app.after_request
    def log_request(response):
        request_logger = getattr(g, "request_logger", None)
        if request_logger is not None:
            elapsed = time.time() - getattr(g, "started", time.time())
            request_logger.info(
                f"{request.method} {request.path} -> {response.status_code} ({elapsed:.3f}s)"
            )
        if request.path.startswith("/api/") and request.method != "OPTIONS":
            app.event_log.track_action(
                "api_call",
                {"path": request.path, "status": response.status_code},
                user_id=current_identity().user_id,
            )
        return response


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(SentimentIQError)
    def handle_service_error(error: SentimentIQError):
        body, status = error_response(error)
        if status >= 500:
            app.event_log.log_event(
                "error", body["message"], "api",
                {"path": request.path, "status": status}, error=error,
            )
        return jsonify(body), status

    @app.errorhandler(404)
    def not_found(error):
        logger.warning(f"404 - Route not found: {request.path}")
        return jsonify(ErrorResponse.not_found()), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify(ErrorResponse.create(
            "Method not allowed", f"{request.method} is not supported on {request.path}",
            "method_not_allowed",
        )), 405

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        if isinstance(error, HTTPException):
            return jsonify(ErrorResponse.create(error.name, error.description or "")), error.code
        body, status = error_response(error)
        app.event_log.log_event(
            "error", "Unhandled server error", "api", {"path": request.path}, error=error
        )
        return jsonify(body), status
