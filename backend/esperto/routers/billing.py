"""
Billing router for Stripe subscription management.
"""
import logging
from typing import Optional

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request, Header
from sqlalchemy.orm import Session
from pydantic import BaseModel

from esperto.database import get_db
from esperto.config import get_settings
from esperto.exceptions import RemoteFailure
from esperto.routers.auth import require_auth
from esperto.services import stripe_service
from esperto.services.policy_store import effective_plan
from esperto.models import Subscriber, User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["billing"])


class CheckoutRequest(BaseModel):
    plan: str  # 'premium', 'pro' or 'empresarial'


class CheckoutResponse(BaseModel):
    checkout_url: str


class SubscriptionStatus(BaseModel):
    plan: str
    effective_plan: str
    subscribed: bool
    subscription_tier: Optional[str]
    subscription_end: Optional[str]


@router.post("/create-checkout", response_model=CheckoutResponse)
async def create_checkout(
    request: CheckoutRequest,
    current_user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    """Create a Stripe Checkout session for subscription."""
    if request.plan not in stripe_service.PAID_PLANS:
        raise HTTPException(
            status_code=400,
            detail="Invalid plan. Must be 'premium', 'pro' or 'empresarial'"
        )

    settings = get_settings()
    if not settings.stripe_secret_key:
        raise HTTPException(
            status_code=503,
            detail="Payment processing is not configured. Please try again later."
        )

    try:
        checkout_url = stripe_service.create_checkout_session(
            db,
            user=current_user,
            plan=request.plan,
            success_url=f"{settings.frontend_url}/planos?success=true",
            cancel_url=f"{settings.frontend_url}/planos?cancelled=true"
        )
        return CheckoutResponse(checkout_url=checkout_url)

    except ValueError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except stripe.StripeError as e:
        raise RemoteFailure(f"Checkout session failed for {current_user.id}: {e}") from e


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(None, alias="Stripe-Signature"),
    db: Session = Depends(get_db)
):
    """Handle Stripe webhook events."""
    if not get_settings().stripe_webhook_secret:
        raise HTTPException(status_code=503, detail="Webhook not configured")

    if not stripe_signature:
        raise HTTPException(status_code=400, detail="Missing Stripe signature")

    payload = await request.body()

    try:
        event = stripe_service.verify_webhook_signature(payload, stripe_signature)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning(f"Webhook signature verification failed: {e}")
        raise HTTPException(status_code=400, detail="Invalid signature")

    event_type = event.get("type")
    data = event.get("data", {}).get("object", {})

    try:
        if event_type == "checkout.session.completed":
            stripe_service.handle_checkout_completed(data, db)

        elif event_type == "customer.subscription.updated":
            stripe_service.handle_subscription_updated(data, db)

        elif event_type == "customer.subscription.deleted":
            stripe_service.handle_subscription_deleted(data, db)

    except Exception as e:
        # Stripe retries failed deliveries; acknowledge and investigate from the logs
        db.rollback()
        logger.exception(f"Error handling webhook {event_type}: {e}")

    return {"status": "ok"}


@router.get("/subscription-status", response_model=SubscriptionStatus)
async def get_subscription_status(
    current_user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    """Get current user's subscription status."""
    subscriber = db.query(Subscriber).filter(Subscriber.user_id == current_user.id).first()
    end = subscriber.subscription_end if subscriber else None
    return SubscriptionStatus(
        plan=current_user.plan or "free",
        effective_plan=effective_plan(db, current_user),
        subscribed=bool(subscriber and subscriber.subscribed),
        subscription_tier=subscriber.subscription_tier if subscriber else None,
        subscription_end=end.isoformat() if end else None
    )
