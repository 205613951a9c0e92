"""One-way password hashing."""

from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash

# Verified against when the account does not exist so both paths cost one hash.
_DUMMY_HASH = generate_password_hash("dummy-password-for-timing")


def hash_password(plaintext: str) -> str:
    """Return a salted digest for ``plaintext``."""

    if not plaintext:
        raise ValueError("Password must not be empty.")
    return generate_password_hash(plaintext)


def verify_password(plaintext: str, digest: str | None) -> bool:
    """Return True if ``plaintext`` matches ``digest``."""

    if not digest or plaintext is None:
        return False
    return check_password_hash(digest, plaintext)


def burn_verification(plaintext: str) -> None:
    """Spend the same work as a real verification and discard the result."""

    check_password_hash(_DUMMY_HASH, plaintext or "")
