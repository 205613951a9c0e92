"""Development mailer that only logs deliveries."""

from __future__ import annotations

import logging

from .abstract_mailer import AbstractMailer

logger = logging.getLogger(__name__)


class LogMailer(AbstractMailer):
    def send_verification_email(self, user, token: str) -> None:
        logger.info("Verification email queued for user %s", user.id)

    def send_password_reset_email(self, email: str, token: str) -> None:
        logger.info("Password reset email queued for %s", email)
