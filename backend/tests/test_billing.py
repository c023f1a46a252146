"""Tests for Stripe billing endpoints and subscription state."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe

from esperto.config import get_settings
from esperto.models import Subscriber, User


@pytest.fixture
def stripe_configured(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "stripe_secret_key", "sk_test_123")
    monkeypatch.setattr(settings, "stripe_webhook_secret", "whsec_123")
    monkeypatch.setattr(settings, "stripe_price_premium", "price_premium")
    monkeypatch.setattr(settings, "stripe_price_pro", "price_pro")
    monkeypatch.setattr(settings, "stripe_price_empresarial", "price_empresarial")


def send_event(client, event):
    with patch("esperto.services.stripe_service.verify_webhook_signature", return_value=event):
        return client.post("/api/billing/webhook", content=b"{}", headers={"Stripe-Signature": "t=1,v1=abc"})


def test_invalid_plan_is_400(client, user, auth_headers, stripe_configured):
    response = client.post("/api/billing/create-checkout", json={"plan": "gold"}, headers=auth_headers(user))

    assert response.status_code == 400


def test_checkout_unavailable_without_stripe(client, user, auth_headers, monkeypatch):
    monkeypatch.setattr(get_settings(), "stripe_secret_key", None)

    response = client.post("/api/billing/create-checkout", json={"plan": "premium"}, headers=auth_headers(user))

    assert response.status_code == 503


def test_create_checkout(client, db, user, auth_headers, stripe_configured):
    with patch("esperto.services.stripe_service.stripe") as stripe_mock:
        stripe_mock.Customer.create.return_value = SimpleNamespace(id="cus_123")
        stripe_mock.checkout.Session.create.return_value = SimpleNamespace(url="https://checkout.stripe.test/s")

        response = client.post("/api/billing/create-checkout", json={"plan": "pro"}, headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json() == {"checkout_url": "https://checkout.stripe.test/s"}
    kwargs = stripe_mock.checkout.Session.create.call_args.kwargs
    assert kwargs["line_items"] == [{"price": "price_pro", "quantity": 1}]
    assert kwargs["metadata"] == {"user_id": user.id, "plan": "pro"}
    assert db.query(Subscriber).filter_by(user_id=user.id).one().stripe_customer_id == "cus_123"


def test_stripe_failure_is_generic_500(client, user, auth_headers, stripe_configured):
    with patch(
        "esperto.services.stripe_service.create_checkout_session",
        side_effect=stripe.StripeError("No such price: price_pro"),
    ):
        response = client.post("/api/billing/create-checkout", json={"plan": "pro"}, headers=auth_headers(user))

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}


def test_webhook_requires_signature(client, stripe_configured):
    assert client.post("/api/billing/webhook", content=b"{}").status_code == 400


def test_checkout_completed_activates_plan(client, db, user, stripe_configured):
    period_end = int((datetime.now(timezone.utc) + timedelta(days=30)).timestamp())
    event = {
        "type": "checkout.session.completed",
        "data": {"object": {
            "metadata": {"user_id": user.id, "plan": "premium"},
            "customer": "cus_abc",
            "subscription": "sub_abc",
        }},
    }

    with patch("esperto.services.stripe_service.stripe.Subscription.retrieve",
               return_value={"current_period_end": period_end}):
        response = send_event(client, event)

    assert response.json() == {"status": "ok"}
    db.expire_all()
    subscriber = db.query(Subscriber).filter_by(user_id=user.id).one()
    assert subscriber.subscribed is True
    assert subscriber.subscription_tier == "premium"
    assert subscriber.stripe_subscription_id == "sub_abc"
    assert db.query(User).filter_by(id=user.id).one().plan == "premium"


def test_subscription_deleted_downgrades(client, db, user, stripe_configured):
    user.plan = "pro"
    db.add(Subscriber(
        user_id=user.id, email=user.email, stripe_customer_id="cus_abc",
        subscribed=True, subscription_tier="pro"
    ))
    db.commit()

    send_event(client, {"type": "customer.subscription.deleted", "data": {"object": {"customer": "cus_abc"}}})

    db.expire_all()
    assert db.query(Subscriber).filter_by(user_id=user.id).one().subscribed is False
    assert db.query(User).filter_by(id=user.id).one().plan == "free"


def test_subscription_updated_past_due_downgrades(client, db, user, stripe_configured):
    user.plan = "premium"
    db.add(Subscriber(
        user_id=user.id, email=user.email, stripe_customer_id="cus_abc",
        subscribed=True, subscription_tier="premium"
    ))
    db.commit()

    send_event(client, {
        "type": "customer.subscription.updated",
        "data": {"object": {"customer": "cus_abc", "status": "past_due"}},
    })

    db.expire_all()
    assert db.query(User).filter_by(id=user.id).one().plan == "free"


def test_subscription_status(client, db, user, auth_headers):
    user.plan = "premium"
    db.add(Subscriber(
        user_id=user.id, email=user.email, subscribed=True, subscription_tier="premium",
        subscription_end=datetime.now(timezone.utc) + timedelta(days=10)
    ))
    db.commit()

    data = client.get("/api/billing/subscription-status", headers=auth_headers(user)).json()

    assert data["plan"] == "premium"
    assert data["effective_plan"] == "premium"
    assert data["subscribed"] is True
    assert data["subscription_end"] is not None
