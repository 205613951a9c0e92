"""SMTP delivery of account emails."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from .abstract_mailer import AbstractMailer

logger = logging.getLogger(__name__)


class SmtpMailer(AbstractMailer):
    """Send plain-text account emails through an SMTP relay."""

    def __init__(
        self,
        base_url: str,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        sender: str = "no-reply@localhost",
        timeout: float = 10.0,
    ):
        super().__init__(base_url)
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.sender = sender
        self.timeout = timeout

    def send_verification_email(self, user, token: str) -> None:
        body = (
            f"Hello {user.name},\n\n"
            "Please confirm your email address by opening the link below:\n"
            f"{self.verification_url(token)}\n\n"
            "If you did not create an account, no further action is required.\n"
        )
        self._send(user.email, "Verify Email Address", body)

    def send_password_reset_email(self, email: str, token: str) -> None:
        body = (
            "You are receiving this email because we received a password reset "
            "request for your account.\n\n"
            f"{self.reset_url(email, token)}\n\n"
            "If you did not request a password reset, no further action is required.\n"
        )
        self._send(email, "Reset Password Notification", body)

    def _send(self, recipient: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username and self.password:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to deliver '%s' email to %s", subject, recipient)
            return
        logger.info("Delivered '%s' email to %s", subject, recipient)
