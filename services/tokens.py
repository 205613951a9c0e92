"""Email verification and password reset tokens."""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from models import db
from models.password_reset_token import PasswordResetToken
from models.user import User
from utils.timeutils import utcnow
from utils.validation import normalize_email

from .errors import (
    ResetThrottled,
    SignatureMismatch,
    TokenExpired,
    TokenInvalid,
    TokenMismatch,
    TokenNotFound,
)

logger = logging.getLogger(__name__)

VERIFICATION_SALT = "email-verification"


def _email_digest(email: str) -> str:
    return hashlib.sha1(normalize_email(email).encode("utf-8")).hexdigest()


def _token_digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class VerificationClaim:
    user_id: int
    email_hash: str

    def matches(self, user: User) -> bool:
        """True if the claim was issued for the user's current email."""
        return hmac.compare_digest(self.email_hash, _email_digest(user.email))


class VerificationTokenIssuer:
    """Stateless, signed, time-limited email verification tokens."""

    def __init__(self, secret_key: str, ttl: timedelta = timedelta(minutes=60)):
        if not secret_key:
            raise RuntimeError("A secret key is required to sign verification tokens.")
        self.ttl = ttl
        self._serializer = URLSafeTimedSerializer(secret_key=secret_key, salt=VERIFICATION_SALT)

    def issue(self, user: User) -> str:
        return self._serializer.dumps({"id": user.id, "hash": _email_digest(user.email)})

    def validate(self, token: str) -> VerificationClaim:
        if not token:
            raise TokenInvalid()
        try:
            data = self._serializer.loads(token, max_age=int(self.ttl.total_seconds()))
        except SignatureExpired as exc:
            raise TokenExpired("This verification link has expired.") from exc
        except BadSignature as exc:
            raise SignatureMismatch() from exc

        if not isinstance(data, dict):
            raise TokenInvalid()
        user_id = data.get("id")
        email_hash = data.get("hash")
        if not isinstance(user_id, int) or not isinstance(email_hash, str):
            raise TokenInvalid()
        return VerificationClaim(user_id=user_id, email_hash=email_hash)


class ResetTokenIssuer:
    """Random, stored, single-use password reset tokens keyed by email."""

    def __init__(
        self,
        ttl: timedelta = timedelta(minutes=60),
        throttle: timedelta = timedelta(seconds=60),
        clock: Callable[[], datetime] = utcnow,
        session=None,
    ):
        self.ttl = ttl
        self.throttle = throttle
        self.clock = clock
        self.session = session or db.session

    def _query(self):
        return self.session.query(PasswordResetToken)

    def issue(self, email: str) -> str:
        """Store a fresh token for ``email``, replacing any outstanding ones."""

        email = normalize_email(email)
        now = self.clock()
        if self.throttle:
            recent = (
                self._query()
                .filter(
                    PasswordResetToken.email == email,
                    PasswordResetToken.created_at > now - self.throttle,
                )
                .first()
            )
            if recent is not None:
                raise ResetThrottled()

        token = secrets.token_urlsafe(32)
        self._query().filter(PasswordResetToken.email == email).delete(synchronize_session=False)
        self.session.add(
            PasswordResetToken(
                email=email,
                token_hash=_token_digest(token),
                created_at=now,
                expires_at=now + self.ttl,
            )
        )
        self.session.commit()
        self.purge_expired()
        logger.info("Issued password reset token for %s", email)
        return token

    def redeem(self, email: str, token: str) -> None:
        """Consume ``token`` for ``email`` or raise.

        The consuming DELETE is conditional on the digest and expiry, so of
        several concurrent redemptions only the one that removes the row
        succeeds.
        """

        email = normalize_email(email)
        digest = _token_digest(token or "")
        now = self.clock()

        consumed = (
            self._query()
            .filter(
                PasswordResetToken.email == email,
                PasswordResetToken.token_hash == digest,
                PasswordResetToken.expires_at > now,
            )
            .delete(synchronize_session=False)
        )
        if consumed:
            self._query().filter(PasswordResetToken.email == email).delete(
                synchronize_session=False
            )
            self.session.commit()
            logger.info("Redeemed password reset token for %s", email)
            return
        self.session.commit()

        stale = (
            self._query()
            .filter(
                PasswordResetToken.email == email,
                PasswordResetToken.token_hash == digest,
            )
            .delete(synchronize_session=False)
        )
        if stale:
            self.session.commit()
            raise TokenExpired("This password reset token has expired.")

        if self._query().filter(PasswordResetToken.email == email).first() is not None:
            raise TokenMismatch()
        raise TokenNotFound()

    def purge_expired(self) -> int:
        removed = (
            self._query()
            .filter(PasswordResetToken.expires_at <= self.clock())
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return removed
