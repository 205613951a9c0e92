"""Tests for verification and password reset tokens."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from models.password_reset_token import PasswordResetToken
from services.credential_store import CredentialStore
from services.errors import (
    ResetThrottled,
    SignatureMismatch,
    TokenExpired,
    TokenInvalid,
    TokenMismatch,
    TokenNotFound,
)
from services.tokens import ResetTokenIssuer, VerificationTokenIssuer

SECRET = "verification-secret-0123456789abcdef"


@pytest.fixture()
def user(db_session):
    return CredentialStore().create("Alice", "a@x.com", "hashed")


class _Clock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock() -> _Clock:
    return _Clock(datetime(2026, 1, 1, 12, 0, 0))


def test_verification_token_round_trip(user):
    issuer = VerificationTokenIssuer(SECRET)

    claim = issuer.validate(issuer.issue(user))

    assert claim.user_id == user.id
    assert claim.matches(user)


def test_verification_token_bound_to_current_email(user):
    issuer = VerificationTokenIssuer(SECRET)
    claim = issuer.validate(issuer.issue(user))

    user.email = "changed@x.com"

    assert claim.matches(user) is False


def test_tampered_verification_token(user):
    issuer = VerificationTokenIssuer(SECRET)
    token = issuer.issue(user)

    with pytest.raises(SignatureMismatch):
        issuer.validate(("X" if token[0] != "X" else "Y") + token[1:])
    with pytest.raises(SignatureMismatch):
        VerificationTokenIssuer("another-secret-0123456789").validate(token)
    with pytest.raises(TokenInvalid):
        issuer.validate("")


def test_expired_verification_token(user):
    issuer = VerificationTokenIssuer(SECRET, ttl=timedelta(seconds=-1))

    with pytest.raises(TokenExpired):
        issuer.validate(issuer.issue(user))


def test_verification_issuer_requires_secret():
    with pytest.raises(RuntimeError):
        VerificationTokenIssuer("")


def test_reset_token_is_stored_hashed(db_session, clock):
    issuer = ResetTokenIssuer(clock=clock)

    token = issuer.issue("A@x.com")

    record = PasswordResetToken.query.one()
    assert len(token) >= 43
    assert record.email == "a@x.com"
    assert record.token_hash != token
    assert record.expires_at == clock.now + timedelta(minutes=60)


def test_reset_token_is_single_use(db_session, clock):
    issuer = ResetTokenIssuer(clock=clock)
    token = issuer.issue("a@x.com")

    issuer.redeem("a@x.com", token)

    with pytest.raises(TokenNotFound):
        issuer.redeem("a@x.com", token)
    assert PasswordResetToken.query.count() == 0


def test_reset_token_expires(db_session, clock):
    issuer = ResetTokenIssuer(ttl=timedelta(minutes=60), clock=clock)
    token = issuer.issue("a@x.com")

    clock.advance(minutes=61)

    with pytest.raises(TokenExpired):
        issuer.redeem("a@x.com", token)
    with pytest.raises(TokenNotFound):
        issuer.redeem("a@x.com", token)


def test_reset_token_mismatch_keeps_outstanding_token(db_session, clock):
    issuer = ResetTokenIssuer(clock=clock)
    token = issuer.issue("a@x.com")

    with pytest.raises(TokenMismatch):
        issuer.redeem("a@x.com", "not-the-token")
    with pytest.raises(TokenNotFound):
        issuer.redeem("b@x.com", token)

    issuer.redeem("a@x.com", token)


def test_reissuing_invalidates_previous_token(db_session, clock):
    issuer = ResetTokenIssuer(clock=clock)
    first = issuer.issue("a@x.com")
    clock.advance(minutes=2)
    second = issuer.issue("a@x.com")

    with pytest.raises(TokenMismatch):
        issuer.redeem("a@x.com", first)
    issuer.redeem("a@x.com", second)


def test_reset_issue_is_throttled(db_session, clock):
    issuer = ResetTokenIssuer(throttle=timedelta(seconds=60), clock=clock)
    issuer.issue("a@x.com")

    clock.advance(seconds=30)
    with pytest.raises(ResetThrottled):
        issuer.issue("a@x.com")

    clock.advance(seconds=31)
    issuer.issue("a@x.com")
    assert PasswordResetToken.query.count() == 1


def test_purge_expired_removes_only_stale_rows(db_session, clock):
    issuer = ResetTokenIssuer(ttl=timedelta(minutes=10), throttle=timedelta(0), clock=clock)
    issuer.issue("old@x.com")
    clock.advance(minutes=11)
    issuer.issue("new@x.com")

    assert [row.email for row in PasswordResetToken.query.all()] == ["new@x.com"]
