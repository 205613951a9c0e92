"""User-facing account flows.

Each flow receives the already resolved identity (or ``None``) as an explicit
argument and returns an ``Outcome`` describing where the client should go
next. Failures are raised as ``AccountError`` subclasses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from mail.abstract_mailer import AbstractMailer
from models.user import User
from storage.abstract_storage import AbstractStorage
from utils.validation import FieldValidator

from .avatars import avatar_filename
from .credential_store import CredentialStore
from .errors import (
    InvalidCredentials,
    ResetThrottled,
    TokenInvalid,
    Unauthorized,
    ValidationError,
)
from .passwords import hash_password, verify_password
from .sessions import SessionManager
from .tokens import ResetTokenIssuer, VerificationTokenIssuer

logger = logging.getLogger(__name__)

RESET_LINK_STATUS = "If an account exists for that email, we have emailed a password reset link."


@dataclass
class Outcome:
    redirect: str
    message: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"redirect": self.redirect, "status": self.message}
        payload.update(self.data)
        return payload


class AccountWorkflows:
    """Registration, verification, password and profile flows."""

    def __init__(
        self,
        store: CredentialStore,
        verification_tokens: VerificationTokenIssuer,
        reset_tokens: ResetTokenIssuer,
        sessions: SessionManager,
        mailer: AbstractMailer,
        storage: AbstractStorage,
    ):
        self.store = store
        self.verification_tokens = verification_tokens
        self.reset_tokens = reset_tokens
        self.sessions = sessions
        self.mailer = mailer
        self.storage = storage

    def register(
        self, name: str, email: str, password: str, password_confirmation: str
    ) -> Outcome:
        data = {
            "name": name,
            "email": email,
            "password": password,
            "password_confirmation": password_confirmation,
        }
        (
            FieldValidator(data)
            .required("name", "email", "password")
            .email("email")
            .min_length("password", 6)
            .confirmed("password")
            .check(redirect_to="/register")
        )

        user = self.store.create(name, email, hash_password(password))
        self._send_verification(user)
        return Outcome("/", "Registration successful.", {"user": user.to_dict()})

    def verify_email(self, token: str) -> Outcome:
        claim = self.verification_tokens.validate(token)
        user = self.store.get(claim.user_id)
        if not claim.matches(user):
            raise TokenInvalid("This verification link is no longer valid.")
        if self.store.verify_email(user.id):
            return Outcome("/", "Your email address has been verified.")
        return Outcome("/", "Your email address is already verified.")

    def request_verification_resend(self, current_user: User | None) -> Outcome:
        if current_user is None:
            raise Unauthorized()
        if current_user.has_verified_email:
            return Outcome("/profile")
        self._send_verification(current_user)
        return Outcome("/verification", "A fresh verification link has been sent to your email address.")

    def forgot_password(self, email: str) -> Outcome:
        FieldValidator({"email": email}).required("email").email("email").check(
            redirect_to="/forgot-password"
        )

        user = self.store.find_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown account")
        else:
            try:
                token = self.reset_tokens.issue(user.email)
            except ResetThrottled:
                logger.info("Password reset throttled for user %s", user.id)
            else:
                self.mailer.send_password_reset_email(user.email, token)
        return Outcome("/forgot-password", RESET_LINK_STATUS)

    def reset_password(
        self, token: str, email: str, password: str, password_confirmation: str
    ) -> Outcome:
        data = {
            "token": token,
            "email": email,
            "password": password,
            "password_confirmation": password_confirmation,
        }
        (
            FieldValidator(data)
            .required("token", "email", "password")
            .email("email")
            .min_length("password", 8)
            .confirmed("password")
            .check(redirect_to="/reset-password")
        )

        self.reset_tokens.redeem(email, token)
        user = self.store.find_by_email(email)
        if user is None:
            raise TokenInvalid()
        self.store.set_password(user.id, hash_password(password))
        self.store.rotate_remember_token(user.id)
        self.sessions.revoke_all(user.id)
        logger.info("Password reset for user %s", user.id)
        return Outcome("/login", "Your password has been reset.")

    def login(self, email: str, password: str, remember: bool = False) -> Outcome:
        (
            FieldValidator({"email": email, "password": password})
            .required("email", "password")
            .email("email")
            .check(redirect_to="/login")
        )
        handle = self.sessions.login(email, password, remember)
        return Outcome("/", None, {**handle.to_dict(), "user": handle.user.to_dict()})

    def logout(self) -> Outcome:
        self.sessions.logout()
        return Outcome("/login")

    def profile(self, current_user: User) -> Outcome:
        return Outcome(
            "/profile",
            None,
            {
                "f_name": current_user.f_name,
                "l_name": current_user.l_name,
                "username": current_user.name,
                "email": current_user.email,
                "avatar": current_user.avatar,
            },
        )

    def edit_profile(
        self, current_user: User, fields: Mapping[str, Any], avatar=None
    ) -> Outcome:
        validator = (
            FieldValidator(fields)
            .required("email", "name")
            .string("f_name", "l_name")
            .email("email")
        )
        stored_name = None
        if avatar is not None:
            try:
                stored_name = avatar_filename(avatar)
            except ValidationError as exc:
                validator.errors.update(exc.errors)
        validator.check(redirect_to="/profile")

        updates = {key: fields[key] for key in ("email", "name", "f_name", "l_name") if key in fields}
        user = self.store.update(current_user.id, updates)
        if stored_name is not None:
            stored_path = self.storage.store(avatar, stored_name)
            user = self.store.update(user.id, {"avatar": stored_path})
        return Outcome("/profile", "Profile updated.", {"user": user.to_dict()})

    def change_password(
        self,
        current_user: User,
        old_password: str,
        new_password: str,
        new_password_confirmation: str,
    ) -> Outcome:
        data = {
            "old_password": old_password,
            "new_password": new_password,
            "new_password_confirmation": new_password_confirmation,
        }
        (
            FieldValidator(data)
            .required("old_password", "new_password")
            .confirmed("new_password")
            .check(redirect_to="/profile/password")
        )

        if not verify_password(old_password, current_user.password_hash):
            raise InvalidCredentials("Old Password Doesn't match!", redirect_to="/profile/password")
        self.store.set_password(current_user.id, hash_password(new_password))
        return Outcome("/profile/password", "Password changed successfully!")

    def _send_verification(self, user: User) -> None:
        token = self.verification_tokens.issue(user)
        self.mailer.send_verification_email(user, token)
