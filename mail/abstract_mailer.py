"""Notification sender interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from urllib.parse import urlencode


class AbstractMailer(ABC):
    """Delivers account emails. Implementations must not raise on delivery failure."""

    def __init__(self, base_url: str = ""):
        self.base_url = base_url.rstrip("/")

    def verification_url(self, token: str) -> str:
        return f"{self.base_url}/verify-email/{token}"

    def reset_url(self, email: str, token: str) -> str:
        return f"{self.base_url}/reset-password/{token}?{urlencode({'email': email})}"

    @abstractmethod
    def send_verification_email(self, user, token: str) -> None:
        """Send the email-ownership link for ``user``."""

    @abstractmethod
    def send_password_reset_email(self, email: str, token: str) -> None:
        """Send the password reset link to ``email``."""
