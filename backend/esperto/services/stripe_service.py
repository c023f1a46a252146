"""
Stripe service for handling subscription payments.

Paid plans are premium, pro and empresarial. Subscription state lives on the
Subscriber row; User.plan mirrors the tier while the subscription is active.
"""
import logging
from typing import Optional
import stripe
from sqlalchemy.orm import Session
from datetime import datetime, timezone

from esperto.config import get_settings
from esperto.models import Subscriber, User
from esperto.services.plans import PlanTier

logger = logging.getLogger(__name__)

PAID_PLANS = (PlanTier.PREMIUM.value, PlanTier.PRO.value, PlanTier.EMPRESARIAL.value)

ACTIVE_STATUSES = {"active", "trialing"}


def _configure() -> None:
    settings = get_settings()
    if not settings.stripe_secret_key:
        raise ValueError("Stripe is not configured")
    stripe.api_key = settings.stripe_secret_key


def price_id_for(plan: str) -> str:
    settings = get_settings()
    price_ids = {
        PlanTier.PREMIUM.value: settings.stripe_price_premium,
        PlanTier.PRO.value: settings.stripe_price_pro,
        PlanTier.EMPRESARIAL.value: settings.stripe_price_empresarial,
    }
    price_id = price_ids.get(plan)
    if not price_id:
        raise ValueError(f"Price ID for {plan} plan is not configured")
    return price_id


def get_or_create_subscriber(db: Session, user: User) -> Subscriber:
    subscriber = db.query(Subscriber).filter(Subscriber.user_id == user.id).first()
    if subscriber is None:
        subscriber = Subscriber(user_id=user.id, email=user.email or "", subscribed=False)
        db.add(subscriber)
        db.flush()
    return subscriber


def create_customer(user: User) -> str:
    """Create a Stripe customer for a user."""
    _configure()
    customer = stripe.Customer.create(
        email=user.email,
        name=user.name,
        metadata={"user_id": user.id}
    )
    return customer.id


def create_checkout_session(
    db: Session,
    user: User,
    plan: str,
    success_url: str,
    cancel_url: str
) -> str:
    """Create a Stripe Checkout session for subscription."""
    _configure()
    price_id = price_id_for(plan)

    subscriber = get_or_create_subscriber(db, user)
    if not subscriber.stripe_customer_id:
        subscriber.stripe_customer_id = create_customer(user)
        db.commit()

    session = stripe.checkout.Session.create(
        customer=subscriber.stripe_customer_id,
        payment_method_types=["card"],
        line_items=[{
            "price": price_id,
            "quantity": 1,
        }],
        mode="subscription",
        success_url=success_url,
        cancel_url=cancel_url,
        metadata={"user_id": user.id, "plan": plan},
        subscription_data={
            "metadata": {"user_id": user.id, "plan": plan}
        }
    )
    return session.url


def _period_end(subscription) -> Optional[datetime]:
    current_period_end = subscription.get("current_period_end")
    if not current_period_end:
        return None
    return datetime.fromtimestamp(current_period_end, tz=timezone.utc)


def _apply_plan(subscriber: Subscriber, plan: Optional[str], active: bool) -> None:
    subscriber.subscribed = active
    if plan in PAID_PLANS:
        subscriber.subscription_tier = plan

    user = subscriber.user
    if user is None or user.plan == "admin":
        return
    if active and subscriber.subscription_tier:
        user.plan = subscriber.subscription_tier
    elif not active:
        user.plan = PlanTier.FREE.value


def handle_checkout_completed(session: dict, db: Session) -> None:
    """Handle successful checkout completion."""
    metadata = session.get("metadata") or {}
    user_id = metadata.get("user_id")
    if not user_id:
        return

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"Checkout completed for unknown user {user_id}")
        return

    subscriber = get_or_create_subscriber(db, user)
    subscriber.stripe_customer_id = session.get("customer") or subscriber.stripe_customer_id

    subscription_id = session.get("subscription")
    if subscription_id:
        subscriber.stripe_subscription_id = subscription_id
        subscription = stripe.Subscription.retrieve(subscription_id)
        subscriber.subscription_end = _period_end(subscription)

    _apply_plan(subscriber, metadata.get("plan"), active=True)
    db.commit()
    logger.info(f"Subscription started for {user_id} ({subscriber.subscription_tier})")


def handle_subscription_updated(subscription: dict, db: Session) -> None:
    """Handle subscription updates (renewal, cancellation, etc.)."""
    customer_id = subscription.get("customer")
    subscriber = db.query(Subscriber).filter(Subscriber.stripe_customer_id == customer_id).first()
    if not subscriber:
        return

    metadata = subscription.get("metadata") or {}
    end = _period_end(subscription)
    if end:
        subscriber.subscription_end = end

    _apply_plan(subscriber, metadata.get("plan"), active=subscription.get("status") in ACTIVE_STATUSES)
    db.commit()


def handle_subscription_deleted(subscription: dict, db: Session) -> None:
    """Handle subscription cancellation/deletion."""
    customer_id = subscription.get("customer")
    subscriber = db.query(Subscriber).filter(Subscriber.stripe_customer_id == customer_id).first()
    if not subscriber:
        return

    _apply_plan(subscriber, None, active=False)
    db.commit()
    logger.info(f"Subscription cancelled for {subscriber.user_id}")


def verify_webhook_signature(payload: bytes, signature: str) -> dict:
    """Verify webhook signature and return event."""
    settings = get_settings()
    if not settings.stripe_webhook_secret:
        raise ValueError("Stripe webhook secret is not configured")

    return stripe.Webhook.construct_event(
        payload,
        signature,
        settings.stripe_webhook_secret
    )
