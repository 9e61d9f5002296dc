"""Admin dashboard routes, guarded by the X-Admin-Token header."""

import hmac
import logging
from functools import wraps

from flask import Blueprint, current_app, jsonify, request

from sentimentiq.web.identity import ADMIN_TOKEN_HEADER
from sentimentiq.web.responses import ErrorResponse

logger = logging.getLogger("web.admin")

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def admin_required(f):
    """Reject the request unless the admin token matches admin.token."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected = current_app.config.get("ADMIN_TOKEN")
        supplied = request.headers.get(ADMIN_TOKEN_HEADER) or ""

        if not expected:
            logger.warning("Admin endpoint called but no admin token is configured")
            return jsonify(ErrorResponse.unauthorized("Admin access is not configured")), 401
        if not hmac.compare_digest(supplied, expected):
            return jsonify(ErrorResponse.unauthorized("Invalid admin token")), 401

        return f(*args, **kwargs)

    return decorated_function


@admin_bp.route("/logs", methods=["GET"])
@admin_required
def system_logs():
    limit = max(1, min(request.args.get("limit", 100, type=int), 1000))
    entries = current_app.event_log.recent(
        limit=limit,
        level=request.args.get("level"),
        category=request.args.get("category"),
    )
    return jsonify({"logs": [e.to_dict() for e in entries], "count": len(entries)})


@admin_bp.route("/analytics", methods=["GET"])
@admin_required
def analytics():
    return jsonify(current_app.event_log.analytics())
