"""Administrator blueprint for account management."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from models.user import User
from services.gate import AccessLevel, require_access
from utils.request_validation import parse_request_data

admin_bp = Blueprint("admin", __name__)


@admin_bp.route("/users", methods=["GET"])
@require_access(AccessLevel.ADMIN)
def list_users(current_user: User):
    """Return every account ordered by creation time."""

    users = User.query.order_by(User.created_at.asc(), User.id.asc()).all()
    return jsonify({"results": [user.to_dict() for user in users], "count": len(users)})


@admin_bp.route("/users/<int:user_id>/role", methods=["POST"])
@require_access(AccessLevel.ADMIN)
def set_role(user_id: int, current_user: User):
    payload = parse_request_data(request)
    user = current_app.extensions["credential_store"].set_role(user_id, payload.get("role"))
    current_app.logger.info("User %s set role of user %s to %s", current_user.id, user.id, user.role.value)
    return jsonify({"user": user.to_dict()})
