"""History routes for signed-in callers on tiers with history."""

import logging

from flask import Blueprint, current_app, jsonify, request

from sentimentiq.web.identity import current_identity
from sentimentiq.web.responses import ErrorResponse

logger = logging.getLogger("web.history")

history_bp = Blueprint("history", __name__)

MAX_LIMIT = 100


@history_bp.route("/api/history", methods=["GET"])
def list_history():
    identity = current_identity()
    limit = request.args.get("limit", 50, type=int)
    limit = max(1, min(limit, MAX_LIMIT))

    records = current_app.orchestrator.list_history(identity.user_id, identity.tier, limit=limit)
    return jsonify({
        "history": [r.to_dict() for r in records],
        "count": len(records),
    })


@history_bp.route("/api/history/<record_id>", methods=["DELETE"])
def delete_history(record_id: str):
    identity = current_identity()
    deleted = current_app.orchestrator.delete_history(identity.user_id, identity.tier, record_id)
    if not deleted:
        return jsonify(ErrorResponse.not_found("History record not found")), 404

    logger.info(f"Deleted history record {record_id[:8]}...")
    return jsonify({"deleted": True, "id": record_id})
