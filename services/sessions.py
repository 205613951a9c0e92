"""Session establishment and resolution on top of JWT access tokens."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from flask_jwt_extended import (
    create_access_token,
    get_jti,
    get_jwt,
    verify_jwt_in_request,
)
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from models import db
from models.user import User
from models.user_session import UserSession
from utils.timeutils import utcnow

from .credential_store import CredentialStore
from .errors import InvalidCredentials
from .passwords import burn_verification, verify_password

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionHandle:
    access_token: str
    expires_at: datetime
    remember: bool
    user: User

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "expires_at": self.expires_at.isoformat(),
            "remember": self.remember,
        }


class SessionManager:
    """Owns ``UserSession`` rows.

    Must be used inside a Flask request (``resolve``/``logout``) or
    application context (``login``).
    """

    def __init__(
        self,
        store: CredentialStore,
        ttl: timedelta = timedelta(minutes=120),
        remember_ttl: timedelta = timedelta(days=30),
        session=None,
    ):
        self.store = store
        self.ttl = ttl
        self.remember_ttl = remember_ttl
        self.session = session or db.session

    def login(self, email: str, password: str, remember: bool = False) -> SessionHandle:
        user = self.store.find_by_email(email)
        if user is None:
            burn_verification(password)
            logger.info("Login failed for unknown account")
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            logger.info("Login failed for user %s", user.id)
            raise InvalidCredentials()

        lifetime = self.remember_ttl if remember else self.ttl
        access_token = create_access_token(
            identity=str(user.id),
            expires_delta=lifetime,
            additional_claims={"remember": bool(remember)},
        )
        expires_at = utcnow() + lifetime
        self.session.add(
            UserSession(
                jti=get_jti(access_token),
                user_id=user.id,
                remember=bool(remember),
                expires_at=expires_at,
            )
        )
        self.session.commit()
        logger.info("User %s logged in (remember=%s)", user.id, bool(remember))
        return SessionHandle(access_token, expires_at, bool(remember), user)

    def _current_jti(self) -> str | None:
        try:
            verify_jwt_in_request(optional=True)
        except (JWTExtendedException, PyJWTError):
            return None
        return get_jwt().get("jti")

    def _active_session(self, jti: str | None) -> UserSession | None:
        if not jti:
            return None
        record = self.session.query(UserSession).filter(UserSession.jti == jti).first()
        if record is None or record.expires_at <= utcnow():
            return None
        return record

    def is_active(self, jti: str | None) -> bool:
        return self._active_session(jti) is not None

    def resolve(self) -> User | None:
        """Return the user bound to the current request, if any."""

        record = self._active_session(self._current_jti())
        if record is None:
            return None
        return self.session.get(User, record.user_id)

    def logout(self) -> None:
        jti = self._current_jti()
        if not jti:
            return
        removed = (
            self.session.query(UserSession)
            .filter(UserSession.jti == jti)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        if removed:
            logger.info("Session %s ended", jti)

    def revoke_all(self, user_id: int) -> int:
        removed = (
            self.session.query(UserSession)
            .filter(UserSession.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        logger.info("Revoked %s session(s) for user %s", removed, user_id)
        return removed
