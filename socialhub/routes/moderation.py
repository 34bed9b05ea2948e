"""
Moderation routes for staff.

Endpoints:
- POST /moderation/evaluate          preview the gate verdict for a text (moderators/admins)
- POST /moderation/cleanup-comments  remove stored comments matching the rules (admins)
- POST /moderation/reload-rules      re-read the rule file in this process (admins)
"""

from __future__ import annotations
from flask import Blueprint, request, jsonify
from socialhub.services import cleanup
from socialhub.services.moderation import evaluate, reload_rules
from socialhub.utils.auth import require_role, get_current_actor, ROLE_ADMIN, PRIVILEGED_ROLES

moderation_bp = Blueprint("moderation", __name__, url_prefix="/moderation")


@moderation_bp.route("/evaluate", methods=["POST"])
@require_role(*PRIVILEGED_ROLES)
def evaluate_text():
    data = request.get_json(silent=True) or {}
    verdict = evaluate(data.get("text"))
    return jsonify(verdict.to_dict()), 200


@moderation_bp.route("/cleanup-comments", methods=["POST"])
@require_role(ROLE_ADMIN)
def cleanup_offensive_comments():
    """Scan all comments and remove those matching moderation rules."""
    deleted = cleanup.sweep(get_current_actor())
    return jsonify({
        "message": f"Cleanup complete. Removed {deleted} offensive comments.",
        "deletedCount": deleted,
    }), 200


@moderation_bp.route("/reload-rules", methods=["POST"])
@require_role(ROLE_ADMIN)
def reload_moderation_rules():
    count = reload_rules()
    return jsonify({"message": f"Loaded {count} moderation rule(s)", "ruleCount": count}), 200
