"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from mail.abstract_mailer import AbstractMailer  # noqa: E402
from models import db  # noqa: E402
from models.user import Role, User  # noqa: E402
from services.passwords import hash_password  # noqa: E402
from storage.abstract_storage import AbstractStorage  # noqa: E402
from utils.timeutils import utcnow  # noqa: E402


class _BaseTestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key-with-enough-entropy-0123456789"
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-entropy-0123456789"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MAIL_BACKEND = "log"
    STRIPE_SECRET_KEY = "sk_test"
    STRIPE_WEBHOOK_SECRET = "whsec_test"
    PRICE_MONTHLY = "price_monthly"
    BILLING_SUCCESS_URL = "https://example.com/success"
    BILLING_CANCEL_URL = "https://example.com/cancel"


class RecordingMailer(AbstractMailer):
    """Keeps every delivery in memory instead of sending it."""

    def __init__(self):
        super().__init__("https://app.example.com")
        self.sent: list[tuple[str, str, str]] = []

    def send_verification_email(self, user, token: str) -> None:
        self.sent.append(("verification", user.email, token))

    def send_password_reset_email(self, email: str, token: str) -> None:
        self.sent.append(("reset", email, token))

    def tokens(self, kind: str, email: str | None = None) -> list[str]:
        return [
            token
            for sent_kind, recipient, token in self.sent
            if sent_kind == kind and (email is None or recipient == email)
        ]


class MemoryStorage(AbstractStorage):
    """Stores uploads in a dict keyed by stored path."""

    def __init__(self):
        self.files: dict[str, bytes] = {}

    def store(self, file_obj, desired_name: str) -> str:
        path = f"avatars/{desired_name}"
        self.files[path] = file_obj.read()
        return path

    def exists(self, path: str) -> bool:
        return path in self.files


@pytest.fixture()
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def app(tmp_path, mailer, storage) -> Flask:
    """Create a Flask application instance for tests."""

    upload_dir = tmp_path / "uploads"

    class TestConfig(_BaseTestConfig):
        UPLOAD_DIR = str(upload_dir)

    application = create_app(TestConfig, mailer=mailer, storage=storage)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def db_session(app: Flask):
    """Run the test inside an application context and hand out the session."""

    with app.app_context():
        yield db.session


@pytest.fixture()
def accounts(app: Flask, db_session):
    return app.extensions["accounts"]


def create_user(
    email: str = "member@example.com",
    password: str = "secret123",
    *,
    name: str = "Member",
    role: Role = Role.MEMBER,
    verified: bool = False,
) -> User:
    """Persist a user directly; requires an application context."""

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        email_verified_at=utcnow() if verified else None,
    )
    db.session.add(user)
    db.session.commit()
    return user


def login(client: FlaskClient, email: str, password: str, remember: bool = False) -> str:
    response = client.post(
        "/auth/login",
        json={"email": email, "password": password, "remember": remember},
    )
    assert response.status_code == 200, response.get_json()
    return response.get_json()["access_token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
