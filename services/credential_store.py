"""Persistence boundary for user records."""

from __future__ import annotations

import logging
import secrets
from typing import Any, Mapping

from sqlalchemy.exc import IntegrityError

from models import db
from models.user import Role, User
from utils.timeutils import utcnow
from utils.validation import normalize_email

from .errors import DuplicateEmail, UserNotFound, ValidationError

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "email", "f_name", "l_name", "avatar")


class CredentialStore:
    """Reads and writes ``User`` rows.

    Email uniqueness is left to the unique index: inserts and email changes
    that collide surface as ``DuplicateEmail`` from the failed flush rather
    than from a prior lookup.
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def create(self, name: str, email: str, password_hash: str) -> User:
        name = (name or "").strip()
        email = normalize_email(email)
        errors: dict[str, list[str]] = {}
        if not name:
            errors["name"] = ["The name field is required."]
        if not email:
            errors["email"] = ["The email field is required."]
        if not password_hash:
            errors["password"] = ["The password field is required."]
        if errors:
            raise ValidationError(errors)

        user = User(name=name, email=email, password_hash=password_hash, role=Role.MEMBER)
        self.session.add(user)
        self._commit_unique()
        logger.info("Created user %s", user.id)
        return user

    def find_by_email(self, email: str | None) -> User | None:
        email = normalize_email(email)
        if not email:
            return None
        return self.session.query(User).filter(User.email == email).first()

    def get(self, user_id: int) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise UserNotFound("User not found.")
        return user

    def update(self, user_id: int, fields: Mapping[str, Any]) -> User:
        user = self.get(user_id)
        for field in UPDATABLE_FIELDS:
            if field not in fields:
                continue
            value = fields[field]
            if field == "email":
                value = normalize_email(value)
                if value != user.email:
                    user.email_verified_at = None
            elif isinstance(value, str):
                value = value.strip() or None
            setattr(user, field, value)
        if not user.name:
            self.session.rollback()
            raise ValidationError({"name": ["The name field is required."]})
        self._commit_unique()
        return user

    def verify_email(self, user_id: int) -> bool:
        """Stamp the verification time once; return True if this call did it."""

        updated = (
            self.session.query(User)
            .filter(User.id == user_id, User.email_verified_at.is_(None))
            .update({User.email_verified_at: utcnow()}, synchronize_session=False)
        )
        self.session.commit()
        if updated:
            logger.info("Verified email for user %s", user_id)
            return True
        self.get(user_id)
        return False

    def set_password(self, user_id: int, password_hash: str) -> None:
        user = self.get(user_id)
        user.password_hash = password_hash
        self.session.commit()

    def rotate_remember_token(self, user_id: int) -> str:
        user = self.get(user_id)
        user.remember_token = secrets.token_urlsafe(45)[:60]
        self.session.commit()
        return user.remember_token

    def set_role(self, user_id: int, role: Role | str) -> User:
        try:
            role = Role(role)
        except ValueError as exc:
            raise ValidationError({"role": ["Role must be one of: member, admin."]}) from exc
        user = self.get(user_id)
        user.role = role
        self.session.commit()
        return user

    def _commit_unique(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise DuplicateEmail() from exc
