"""Subscription model for paid access."""

import enum
from datetime import datetime
from typing import Optional

from utils.timeutils import utcnow

from . import db


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    NONE = "none"


class Subscription(db.Model):
    """Stores the billing period a user has paid for."""

    __tablename__ = "subscriptions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True
    )
    stripe_customer_id = db.Column(db.String(255), nullable=True)
    stripe_subscription_id = db.Column(db.String(255), nullable=True, index=True)
    active_until = db.Column(db.DateTime, nullable=True)
    canceled_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", back_populates="subscription")

    def status(self, now: Optional[datetime] = None) -> SubscriptionStatus:
        """Return the subscription status at ``now``."""

        if self.active_until is None:
            return SubscriptionStatus.NONE
        now = now or utcnow()
        if self.active_until >= now:
            return SubscriptionStatus.ACTIVE
        return SubscriptionStatus.EXPIRED
