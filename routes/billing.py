"""Billing and Stripe integration endpoints."""

from __future__ import annotations

from datetime import UTC, datetime

import stripe
from flask import Blueprint, current_app, jsonify, request

from models import db
from models.subscription import Subscription
from models.user import User
from services.gate import AccessLevel, require_access
from utils.request_validation import parse_request_data
from utils.timeutils import utcnow

billing_bp = Blueprint("billing", __name__)


def _get_or_create_subscription(user_id: int) -> Subscription:
    subscription = Subscription.query.filter_by(user_id=user_id).first()
    if subscription is None:
        subscription = Subscription(user_id=user_id)
        db.session.add(subscription)
    return subscription


def _init_stripe() -> str | None:
    """Configure Stripe with the API key from configuration."""

    api_key = current_app.config.get("STRIPE_SECRET_KEY")
    if not api_key:
        return None
    stripe.api_key = api_key
    return api_key


def _metadata_user_id(metadata: dict) -> int | None:
    try:
        return int(metadata.get("user_id"))
    except (TypeError, ValueError):
        return None


def _period_end(subscription_obj) -> int | None:
    """Read the period end from the subscription or, on newer APIs, its first item."""

    period_end = subscription_obj.get("current_period_end")
    if period_end is not None:
        return period_end
    items = (subscription_obj.get("items") or {}).get("data") or []
    if items:
        return items[0].get("current_period_end")
    return None


def _event_subscription_id(data_object: dict) -> str | None:
    subscription_id = data_object.get("subscription")
    if subscription_id:
        return subscription_id
    details = (data_object.get("parent") or {}).get("subscription_details") or {}
    return details.get("subscription")


@billing_bp.route("/subscription", methods=["GET"])
@require_access(AccessLevel.AUTHENTICATED)
def subscription_status(current_user: User):
    subscription = current_user.subscription
    return jsonify(
        {
            "status": current_user.subscription_status.value,
            "active_until": subscription.active_until.isoformat()
            if subscription and subscription.active_until
            else None,
        }
    )


@billing_bp.route("/create-checkout-session", methods=["POST"])
@require_access(AccessLevel.AUTHENTICATED)
def create_checkout_session(current_user: User):
    """Create a Stripe Checkout session for the monthly subscription."""

    api_key = _init_stripe()
    if not api_key:
        return jsonify({"error": "Stripe secret key is not configured."}), 500

    price_id = current_app.config.get("PRICE_MONTHLY")
    if not price_id:
        return jsonify({"error": "Subscription price is not configured."}), 500

    data = parse_request_data(request, allow_empty=True)
    success_url = data.get("success_url") or current_app.config.get("BILLING_SUCCESS_URL")
    cancel_url = data.get("cancel_url") or current_app.config.get("BILLING_CANCEL_URL")
    if not success_url or not cancel_url:
        return (
            jsonify({"error": "Billing success and cancel URLs must be configured."}),
            400,
        )

    metadata = {"user_id": str(current_user.id)}
    try:
        session = stripe.checkout.Session.create(
            mode="subscription",
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=success_url,
            cancel_url=cancel_url,
            customer_email=current_user.email,
            metadata=metadata,
            subscription_data={"metadata": metadata},
        )
    except stripe.StripeError as exc:  # pragma: no cover - network error
        current_app.logger.warning("Stripe checkout failed for user %s: %s", current_user.id, exc)
        return jsonify({"error": str(exc)}), 502

    return jsonify({"sessionId": session.id, "url": session.url})


def _set_subscription_active(user_id: int, subscription_obj, subscription_id: str) -> None:
    current_period_end = _period_end(subscription_obj)
    if current_period_end is None:
        return
    subscription = _get_or_create_subscription(user_id)
    subscription.stripe_subscription_id = subscription_id
    subscription.stripe_customer_id = subscription_obj.get("customer") or subscription.stripe_customer_id
    subscription.canceled_at = None
    new_expiration = datetime.fromtimestamp(current_period_end, UTC).replace(tzinfo=None)
    if not subscription.active_until or subscription.active_until < new_expiration:
        subscription.active_until = new_expiration


def _handle_subscription_event(subscription_id: str | None) -> None:
    if not subscription_id:
        return
    try:
        subscription_obj = stripe.Subscription.retrieve(subscription_id)
    except stripe.StripeError:  # pragma: no cover - network error
        current_app.logger.warning("Could not retrieve Stripe subscription %s", subscription_id)
        return
    user_id = _metadata_user_id(subscription_obj.get("metadata", {}))
    if user_id is None or db.session.get(User, user_id) is None:
        return
    _set_subscription_active(user_id, subscription_obj, subscription_id)


def _handle_subscription_deleted(data_object: dict) -> None:
    subscription = Subscription.query.filter_by(
        stripe_subscription_id=data_object.get("id")
    ).first()
    if subscription is None:
        user_id = _metadata_user_id(data_object.get("metadata", {}))
        if user_id is None:
            return
        subscription = Subscription.query.filter_by(user_id=user_id).first()
        if subscription is None:
            return
    now = utcnow()
    subscription.canceled_at = now
    subscription.active_until = now


@billing_bp.route("/webhook", methods=["POST"])
def billing_webhook():
    """Handle Stripe webhook events for subscription updates."""

    api_key = _init_stripe()
    if not api_key:
        return jsonify({"error": "Stripe secret key is not configured."}), 500

    webhook_secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    if not webhook_secret:
        return jsonify({"error": "Stripe webhook secret is not configured."}), 500

    payload = request.get_data()
    sig_header = request.headers.get("Stripe-Signature")
    try:
        event = stripe.Webhook.construct_event(payload, sig_header, webhook_secret)
    except (ValueError, stripe.SignatureVerificationError):
        return jsonify({"error": "Invalid webhook signature."}), 400

    event_type = event.get("type")
    data_object = event.get("data", {}).get("object", {})

    if event_type in {"checkout.session.completed", "invoice.paid"}:
        _handle_subscription_event(_event_subscription_id(data_object))
    elif event_type == "customer.subscription.deleted":
        _handle_subscription_deleted(data_object)

    db.session.commit()
    return jsonify({"status": "success"})
