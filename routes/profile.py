"""Profile blueprint for signed-in users."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from werkzeug.datastructures import FileStorage

from models.user import User
from services.gate import AccessLevel, require_access
from utils.request_validation import parse_request_data

profile_bp = Blueprint("profile", __name__)


@profile_bp.route("", methods=["GET"])
@require_access(AccessLevel.AUTHENTICATED)
def show_profile(current_user: User):
    outcome = current_app.extensions["accounts"].profile(current_user)
    return jsonify(outcome.to_dict())


@profile_bp.route("", methods=["POST"])
@require_access(AccessLevel.AUTHENTICATED)
def edit_profile(current_user: User):
    """Update profile fields and, optionally, the avatar image."""

    payload = parse_request_data(request)
    avatar = request.files.get("avatar")
    if not isinstance(avatar, FileStorage) or not avatar.filename:
        avatar = None

    outcome = current_app.extensions["accounts"].edit_profile(current_user, payload, avatar)
    return jsonify(outcome.to_dict())


@profile_bp.route("/password", methods=["POST"])
@require_access(AccessLevel.AUTHENTICATED)
def change_password(current_user: User):
    payload = parse_request_data(request)
    outcome = current_app.extensions["accounts"].change_password(
        current_user,
        payload.get("old_password"),
        payload.get("new_password"),
        payload.get("new_password_confirmation"),
    )
    return jsonify(outcome.to_dict())
