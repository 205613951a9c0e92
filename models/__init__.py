"""Database initialization and model exports."""

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()

# Import models to register them with SQLAlchemy metadata.
from .user import Role, User  # noqa: E402,F401
from .subscription import Subscription, SubscriptionStatus  # noqa: E402,F401
from .password_reset_token import PasswordResetToken  # noqa: E402,F401
from .user_session import UserSession  # noqa: E402,F401

__all__ = [
    "db",
    "Role",
    "User",
    "Subscription",
    "SubscriptionStatus",
    "PasswordResetToken",
    "UserSession",
]
