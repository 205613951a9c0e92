"""Tiered access decisions.

Four levels are checked as independent predicates:

* ``PUBLIC`` (0) always allows.
* ``AUTHENTICATED`` (1), ``PAID`` (2) and ``ADMIN`` (3) need a user.
* ``PAID`` additionally needs an active subscription.
* ``ADMIN`` additionally needs the admin role. It does not check the
  subscription.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable

from flask import current_app

from models.subscription import SubscriptionStatus
from models.user import Role

from .errors import AccountError, Forbidden, SubscriptionRequired, Unauthorized


class AccessLevel(enum.IntEnum):
    PUBLIC = 0
    AUTHENTICATED = 1
    PAID = 2
    ADMIN = 3


@dataclass(frozen=True)
class Decision:
    allowed: bool
    redirect_to: str | None = None
    error: type[AccountError] | None = None

    def raise_for_denial(self) -> None:
        if not self.allowed and self.error is not None:
            raise self.error(redirect_to=self.redirect_to)


ALLOW = Decision(allowed=True)


def redirect_to(error: type[AccountError]) -> Decision:
    return Decision(allowed=False, redirect_to=error.redirect_to, error=error)


def authorize(level: int, user: Any | None) -> Decision:
    """Decide whether ``user`` (or no user) may access ``level``."""

    level = AccessLevel(level)
    if level is AccessLevel.PUBLIC:
        return ALLOW
    if user is None:
        return redirect_to(Unauthorized)
    if level is AccessLevel.PAID and user.subscription_status is not SubscriptionStatus.ACTIVE:
        return redirect_to(SubscriptionRequired)
    if level is AccessLevel.ADMIN and user.role is not Role.ADMIN:
        return redirect_to(Forbidden)
    return ALLOW


def require_access(level: int) -> Callable:
    """Guard a view; the resolved user is passed as ``current_user``."""

    level = AccessLevel(level)

    def decorator(view: Callable) -> Callable:
        @wraps(view)
        def wrapper(*args, **kwargs):
            user = current_app.extensions["sessions"].resolve()
            authorize(level, user).raise_for_denial()
            kwargs["current_user"] = user
            return view(*args, **kwargs)

        return wrapper

    return decorator
