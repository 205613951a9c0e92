"""User model definition."""

import enum
from datetime import datetime
from typing import Optional

from services.passwords import hash_password, verify_password
from utils.timeutils import utcnow

from . import db
from .subscription import SubscriptionStatus


class Role(str, enum.Enum):
    """Closed set of account roles."""

    MEMBER = "member"
    ADMIN = "admin"


class User(db.Model):
    """Represents a registered account."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    f_name = db.Column(db.String(120), nullable=True)
    l_name = db.Column(db.String(120), nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(
        db.Enum(
            Role,
            name="user_role",
            values_callable=lambda roles: [role.value for role in roles],
        ),
        nullable=False,
        default=Role.MEMBER,
    )
    email_verified_at = db.Column(db.DateTime, nullable=True)
    avatar = db.Column(db.String(255), nullable=True)
    remember_token = db.Column(db.String(100), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    subscription = db.relationship(
        "Subscription",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    sessions = db.relationship(
        "UserSession",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = hash_password(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        return verify_password(password, self.password_hash)

    @property
    def has_verified_email(self) -> bool:
        return self.email_verified_at is not None

    def subscription_status_at(self, now: Optional[datetime] = None) -> SubscriptionStatus:
        if self.subscription is None:
            return SubscriptionStatus.NONE
        return self.subscription.status(now)

    @property
    def subscription_status(self) -> SubscriptionStatus:
        return self.subscription_status_at()

    def to_dict(self) -> dict:
        """Serialize the public profile of the user."""

        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "f_name": self.f_name,
            "l_name": self.l_name,
            "avatar": self.avatar,
            "role": self.role.value if self.role else None,
            "email_verified": self.has_verified_email,
            "subscription_status": self.subscription_status.value,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
