"""Application factory."""

import json
import logging
import os
import uuid
from datetime import timedelta

from flask import Flask, current_app, g, jsonify, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config import Config
from mail import AbstractMailer, build_mailer
from models import db
from routes.admin import admin_bp
from routes.auth import auth_bp
from routes.billing import billing_bp
from routes.profile import profile_bp
from services.credential_store import CredentialStore
from services.errors import AccountError
from services.sessions import SessionManager
from services.tokens import ResetTokenIssuer, VerificationTokenIssuer
from services.workflows import AccountWorkflows
from storage import AbstractStorage, LocalStorage

migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)


@jwt.token_in_blocklist_loader
def _session_revoked(jwt_header, jwt_payload) -> bool:
    """Tokens whose session row is gone or expired count as revoked."""
    return not current_app.extensions["sessions"].is_active(jwt_payload.get("jti"))


def _configure_logging(app: Flask) -> None:
    level = app.config.get("LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def create_app(
    config_class: type[Config] = Config,
    *,
    mailer: AbstractMailer | None = None,
    storage: AbstractStorage | None = None,
) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    _configure_logging(app)

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    # CORS
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Rate limiting
    storage_uri = app.config.get("RATELIMIT_STORAGE_URI", "memory://")
    headers_enabled = app.config.get("RATELIMIT_HEADERS_ENABLED", True)
    key_prefix = app.config.get("RATELIMIT_KEY_PREFIX") or str(uuid.uuid4())

    global limiter
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[lambda: app.config.get("RATE_LIMIT", "60 per minute")],
        storage_uri=storage_uri,
        headers_enabled=headers_enabled,
        key_prefix=key_prefix,
    )
    limiter.init_app(app)
    app.config["RATELIMIT_KEY_PREFIX"] = key_prefix

    # Ensure uploads directory exists
    upload_dir = app.config.get("UPLOAD_DIR")
    if upload_dir:
        os.makedirs(upload_dir, exist_ok=True)

    _register_services(app, mailer=mailer, storage=storage)

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(profile_bp, url_prefix="/profile")
    app.register_blueprint(admin_bp, url_prefix="/admin")
    app.register_blueprint(billing_bp, url_prefix="/billing")

    # Health
    @app.route("/health", methods=["GET"])
    def health_check():
        return jsonify({"status": "ok"})

    # Errors
    _register_error_handlers(app)

    return app


def _register_services(
    app: Flask,
    *,
    mailer: AbstractMailer | None,
    storage: AbstractStorage | None,
) -> None:
    """Build the account services and expose them through ``app.extensions``."""

    config = app.config
    store = CredentialStore()
    sessions = SessionManager(
        store,
        ttl=timedelta(minutes=config["SESSION_TTL_MINUTES"]),
        remember_ttl=timedelta(days=config["REMEMBER_SESSION_TTL_DAYS"]),
    )
    workflows = AccountWorkflows(
        store=store,
        verification_tokens=VerificationTokenIssuer(
            config["SECRET_KEY"],
            ttl=timedelta(minutes=config["VERIFICATION_TOKEN_TTL_MINUTES"]),
        ),
        reset_tokens=ResetTokenIssuer(
            ttl=timedelta(minutes=config["RESET_TOKEN_TTL_MINUTES"]),
            throttle=timedelta(seconds=config["RESET_TOKEN_THROTTLE_SECONDS"]),
        ),
        sessions=sessions,
        mailer=mailer or build_mailer(config),
        storage=storage or LocalStorage(config["UPLOAD_DIR"]),
    )
    app.extensions["credential_store"] = store
    app.extensions["sessions"] = sessions
    app.extensions["accounts"] = workflows


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():  # pragma: no cover
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):  # pragma: no cover
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(AccountError)
    def _handle_account_error(error: AccountError):
        request_id = g.get("request_id") or str(uuid.uuid4())
        payload = error.to_dict()
        payload["request_id"] = request_id
        response = jsonify(payload)
        response.status_code = error.status_code
        response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        request_id = g.get("request_id") or str(uuid.uuid4())
        response = error.get_response()
        payload = {
            "error": getattr(error, "name", "Error"),
            "detail": error.description,
            "request_id": request_id,
        }
        response.data = json.dumps(payload)
        response.content_type = "application/json"
        response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):  # pragma: no cover
        request_id = g.get("request_id") or str(uuid.uuid4())
        app.logger.exception("Unhandled application error", exc_info=error)
        payload = {
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred.",
            "request_id": request_id,
        }
        response = jsonify(payload)
        response.status_code = 500
        response.headers.setdefault("X-Request-ID", request_id)
        return response


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
