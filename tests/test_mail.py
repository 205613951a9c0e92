"""Tests for the notification senders."""

from __future__ import annotations

import logging
import smtplib
from types import SimpleNamespace

import pytest

from mail import LogMailer, SmtpMailer


class _FakeSMTP:
    instances: list["_FakeSMTP"] = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.started_tls = False
        self.logged_in = None
        self.messages = []
        _FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, username, password):
        self.logged_in = (username, password)

    def send_message(self, message):
        self.messages.append(message)


@pytest.fixture()
def fake_smtp(monkeypatch):
    _FakeSMTP.instances = []
    monkeypatch.setattr(smtplib, "SMTP", _FakeSMTP)
    return _FakeSMTP


def _mailer() -> SmtpMailer:
    return SmtpMailer(
        base_url="https://app.example.com/",
        host="smtp.example.com",
        username="user",
        password="pass",
        sender="accounts@example.com",
    )


def test_verification_email_contains_link(fake_smtp):
    user = SimpleNamespace(id=1, name="Alice", email="a@x.com")

    _mailer().send_verification_email(user, "tok123")

    smtp = fake_smtp.instances[0]
    message = smtp.messages[0]
    assert smtp.started_tls is True
    assert smtp.logged_in == ("user", "pass")
    assert message["To"] == "a@x.com"
    assert message["From"] == "accounts@example.com"
    assert "https://app.example.com/verify-email/tok123" in message.get_content()


def test_reset_email_contains_link_with_email(fake_smtp):
    _mailer().send_password_reset_email("a+b@x.com", "tok456")

    body = fake_smtp.instances[0].messages[0].get_content()
    assert "https://app.example.com/reset-password/tok456?email=a%2Bb%40x.com" in body


def test_delivery_failure_is_logged_not_raised(monkeypatch, caplog):
    class _BrokenSMTP(_FakeSMTP):
        def send_message(self, message):
            raise smtplib.SMTPServerDisconnected("gone")

    monkeypatch.setattr(smtplib, "SMTP", _BrokenSMTP)

    with caplog.at_level(logging.ERROR, logger="mail.smtp_mailer"):
        _mailer().send_password_reset_email("a@x.com", "tok")

    assert "Failed to deliver" in caplog.text


def test_log_mailer_never_logs_tokens(caplog):
    user = SimpleNamespace(id=7, name="Alice", email="a@x.com")

    with caplog.at_level(logging.INFO, logger="mail.log_mailer"):
        LogMailer().send_verification_email(user, "secret-token")
        LogMailer().send_password_reset_email("a@x.com", "other-secret")

    assert "secret-token" not in caplog.text
    assert "other-secret" not in caplog.text
    assert "user 7" in caplog.text
