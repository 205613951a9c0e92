"""Authentication blueprint: registration, verification, passwords and sessions."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request

from models.user import User
from services.gate import AccessLevel, require_access
from services.workflows import AccountWorkflows
from utils.request_validation import parse_bool, parse_request_data

auth_bp = Blueprint("auth", __name__)


def _accounts() -> AccountWorkflows:
    return current_app.extensions["accounts"]


@auth_bp.route("/register", methods=["POST"])
def register() -> tuple:
    """Create an unverified account and mail its verification link."""
    payload = parse_request_data(request)
    outcome = _accounts().register(
        payload.get("name"),
        payload.get("email"),
        payload.get("password"),
        payload.get("password_confirmation"),
    )
    return jsonify(outcome.to_dict()), HTTPStatus.CREATED


@auth_bp.route("/verify/<path:token>", methods=["GET"])
def verify(token: str) -> tuple:
    outcome = _accounts().verify_email(token)
    return jsonify(outcome.to_dict()), HTTPStatus.OK


@auth_bp.route("/verification", methods=["POST"])
@require_access(AccessLevel.PUBLIC)
def verification(current_user: User | None) -> tuple:
    """Resend the verification link to the signed-in user."""
    outcome = _accounts().request_verification_resend(current_user)
    return jsonify(outcome.to_dict()), HTTPStatus.OK


@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password() -> tuple:
    payload = parse_request_data(request)
    outcome = _accounts().forgot_password(payload.get("email"))
    return jsonify(outcome.to_dict()), HTTPStatus.OK


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password() -> tuple:
    payload = parse_request_data(request)
    outcome = _accounts().reset_password(
        payload.get("token"),
        payload.get("email"),
        payload.get("password"),
        payload.get("password_confirmation"),
    )
    return jsonify(outcome.to_dict()), HTTPStatus.OK


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple:
    """Authenticate a user and return a session access token."""
    payload = parse_request_data(request)
    outcome = _accounts().login(
        payload.get("email"),
        payload.get("password"),
        parse_bool(payload.get("remember")),
    )
    return jsonify(outcome.to_dict()), HTTPStatus.OK


@auth_bp.route("/logout", methods=["POST"])
def logout() -> tuple:
    outcome = _accounts().logout()
    return jsonify(outcome.to_dict()), HTTPStatus.OK
