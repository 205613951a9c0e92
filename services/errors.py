"""Error taxonomy for the account services.

Every error here is user-facing: the application turns it into a JSON
envelope carrying a status code, a message and the path the client should be
sent to. Store connectivity problems are not part of this hierarchy and
surface as server errors.
"""

from __future__ import annotations

from typing import Mapping, Sequence


class AccountError(Exception):
    """Base class for recoverable account errors."""

    status_code = 400
    redirect_to: str | None = None
    default_message = "The request could not be completed."

    def __init__(self, message: str | None = None, *, redirect_to: str | None = None):
        self.message = message or self.default_message
        if redirect_to is not None:
            self.redirect_to = redirect_to
        super().__init__(self.message)

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"error": self.name, "detail": self.message, "redirect": self.redirect_to}


class ValidationError(AccountError):
    """One or more fields are missing or malformed."""

    default_message = "The given data was invalid."

    def __init__(
        self,
        errors: Mapping[str, Sequence[str]],
        message: str | None = None,
        *,
        redirect_to: str | None = None,
    ):
        self.errors = {field: list(messages) for field, messages in errors.items()}
        if message is None and self.errors:
            message = next(iter(self.errors.values()))[0]
        super().__init__(message, redirect_to=redirect_to)

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["errors"] = self.errors
        return payload


class DuplicateEmail(ValidationError):
    status_code = 409

    def __init__(self, redirect_to: str | None = None):
        super().__init__(
            {"email": ["The email has already been taken."]},
            redirect_to=redirect_to,
        )


class InvalidCredentials(AccountError):
    status_code = 401
    default_message = "Invalid credentials."


class TokenInvalid(AccountError):
    default_message = "This token is invalid."


class SignatureMismatch(TokenInvalid):
    default_message = "This token has an invalid signature."


class TokenMismatch(TokenInvalid):
    default_message = "This password reset token is invalid."


class TokenExpired(AccountError):
    default_message = "This token has expired."


class NotFound(AccountError):
    status_code = 404
    default_message = "Not found."


class UserNotFound(NotFound):
    default_message = "We can't find a user with that email address."


class TokenNotFound(NotFound):
    default_message = "This password reset token is invalid."


class ResetThrottled(AccountError):
    status_code = 429
    default_message = "Please wait before retrying."


class Unauthorized(AccountError):
    status_code = 401
    redirect_to = "/login"
    default_message = "Authentication required."


class SubscriptionRequired(AccountError):
    status_code = 402
    redirect_to = "/subscription"
    default_message = "An active subscription is required."


class Forbidden(AccountError):
    status_code = 403
    redirect_to = "/403"
    default_message = "Admin privileges required."
