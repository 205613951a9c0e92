"""Tests for billing webhook handling and subscription status."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import stripe

from conftest import bearer, create_user, login
from models import db
from models.subscription import Subscription, SubscriptionStatus
from models.user import User


def _post_event(client, monkeypatch, event, subscription=None):
    def _mock_construct_event(payload, sig_header, secret):
        assert secret == "whsec_test"
        return event

    monkeypatch.setattr(
        stripe.Webhook, "construct_event", staticmethod(_mock_construct_event)
    )
    if subscription is not None:
        def _mock_subscription_retrieve(subscription_id):
            assert subscription_id == "sub_123"
            return subscription

        monkeypatch.setattr(
            stripe.Subscription, "retrieve", staticmethod(_mock_subscription_retrieve)
        )

    return client.post(
        "/billing/webhook", data=b"{}", headers={"Stripe-Signature": "sig"}
    )


def test_invoice_paid_activates_subscription(app, client, monkeypatch):
    """Webhook should extend active_until when invoices are paid."""

    with app.app_context():
        user_id = create_user("sub@example.com", "secret1").id

    current_period_end = int((datetime.now(UTC) + timedelta(days=30)).timestamp())
    response = _post_event(
        client,
        monkeypatch,
        {"type": "invoice.paid", "data": {"object": {"subscription": "sub_123"}}},
        {
            "metadata": {"user_id": str(user_id)},
            "customer": "cus_1",
            "current_period_end": current_period_end,
        },
    )
    assert response.status_code == 200

    with app.app_context():
        subscription = Subscription.query.filter_by(user_id=user_id).one()
        assert int(subscription.active_until.replace(tzinfo=UTC).timestamp()) == current_period_end
        assert subscription.stripe_subscription_id == "sub_123"
        assert subscription.stripe_customer_id == "cus_1"
        assert db.session.get(User, user_id).subscription_status is SubscriptionStatus.ACTIVE


def test_period_end_read_from_subscription_items(app, client, monkeypatch):
    with app.app_context():
        user_id = create_user("items@example.com", "secret1").id

    current_period_end = int((datetime.now(UTC) + timedelta(days=30)).timestamp())
    response = _post_event(
        client,
        monkeypatch,
        {
            "type": "invoice.paid",
            "data": {
                "object": {
                    "parent": {"subscription_details": {"subscription": "sub_123"}}
                }
            },
        },
        {
            "metadata": {"user_id": str(user_id)},
            "items": {"data": [{"current_period_end": current_period_end}]},
        },
    )
    assert response.status_code == 200

    with app.app_context():
        assert db.session.get(User, user_id).subscription_status is SubscriptionStatus.ACTIVE


def test_subscription_deleted_ends_access(app, client, monkeypatch):
    with app.app_context():
        user_id = create_user("gone@example.com", "secret1").id
        db.session.add(
            Subscription(
                user_id=user_id,
                stripe_subscription_id="sub_123",
                active_until=datetime.now(UTC).replace(tzinfo=None) + timedelta(days=10),
            )
        )
        db.session.commit()

    response = _post_event(
        client,
        monkeypatch,
        {"type": "customer.subscription.deleted", "data": {"object": {"id": "sub_123"}}},
    )
    assert response.status_code == 200

    with app.app_context():
        subscription = Subscription.query.filter_by(user_id=user_id).one()
        assert subscription.canceled_at is not None
        assert db.session.get(User, user_id).subscription_status is not SubscriptionStatus.ACTIVE


def test_invalid_signature_rejected(client, monkeypatch):
    def _raise(payload, sig_header, secret):
        raise stripe.SignatureVerificationError("bad", sig_header)

    monkeypatch.setattr(stripe.Webhook, "construct_event", staticmethod(_raise))

    response = client.post(
        "/billing/webhook", data=b"{}", headers={"Stripe-Signature": "sig"}
    )
    assert response.status_code == 400


def test_subscription_status_endpoint(app, client):
    with app.app_context():
        create_user("status@example.com", "secret1")
    headers = bearer(login(client, "status@example.com", "secret1"))

    response = client.get("/billing/subscription", headers=headers)

    assert response.status_code == 200
    assert response.get_json() == {"status": "none", "active_until": None}
    assert client.get("/billing/subscription").status_code == 401


def test_checkout_session_uses_monthly_price(app, client, monkeypatch):
    with app.app_context():
        user_id = create_user("buyer@example.com", "secret1").id
    headers = bearer(login(client, "buyer@example.com", "secret1"))
    captured = {}

    class _Session:
        id = "cs_test"
        url = "https://checkout.stripe.test/cs_test"

    def _mock_create(**kwargs):
        captured.update(kwargs)
        return _Session()

    monkeypatch.setattr(stripe.checkout.Session, "create", staticmethod(_mock_create))

    response = client.post("/billing/create-checkout-session", headers=headers)

    assert response.status_code == 200
    assert response.get_json() == {"sessionId": "cs_test", "url": "https://checkout.stripe.test/cs_test"}
    assert captured["mode"] == "subscription"
    assert captured["line_items"] == [{"price": "price_monthly", "quantity": 1}]
    assert captured["metadata"] == {"user_id": str(user_id)}
