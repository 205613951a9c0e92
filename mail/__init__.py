"""Notification senders."""

from .abstract_mailer import AbstractMailer
from .log_mailer import LogMailer
from .smtp_mailer import SmtpMailer

__all__ = ["AbstractMailer", "LogMailer", "SmtpMailer", "build_mailer"]


def build_mailer(config) -> AbstractMailer:
    """Return the mailer selected by ``MAIL_BACKEND``."""

    backend = (config.get("MAIL_BACKEND") or "log").lower()
    base_url = config.get("FRONTEND_BASE_URL", "")
    if backend == "smtp":
        return SmtpMailer(
            base_url=base_url,
            host=config.get("MAIL_SERVER", "localhost"),
            port=int(config.get("MAIL_PORT", 587)),
            username=config.get("MAIL_USERNAME"),
            password=config.get("MAIL_PASSWORD"),
            use_tls=bool(config.get("MAIL_USE_TLS", True)),
            sender=config.get("MAIL_FROM", "no-reply@localhost"),
        )
    if backend == "log":
        return LogMailer(base_url=base_url)
    raise RuntimeError(f"Unknown MAIL_BACKEND: {backend}")
