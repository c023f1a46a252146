"""
Auth provider webhooks.

Clerk signs every delivery with svix; unsigned or tampered payloads are
rejected before anything touches the database.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from svix.webhooks import Webhook, WebhookVerificationError

from esperto.config import get_settings
from esperto.database import get_db
from esperto.services.users import handle_clerk_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

SVIX_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")


@router.post("/clerk")
async def clerk_webhook(
    request: Request,
    db: Session = Depends(get_db)
):
    """Handle Clerk user.created, user.updated and user.deleted events."""
    secret = get_settings().clerk_webhook_secret
    if not secret:
        logger.error("CLERK_WEBHOOK_SECRET is not configured")
        raise HTTPException(status_code=500, detail="Webhook secret not configured")

    headers = {name: request.headers.get(name) for name in SVIX_HEADERS}
    if not all(headers.values()):
        raise HTTPException(status_code=400, detail="Missing svix headers")

    payload = await request.body()
    try:
        event = Webhook(secret).verify(payload, headers)
    except WebhookVerificationError as e:
        logger.warning(f"Clerk webhook verification failed: {e}")
        raise HTTPException(status_code=400, detail="Invalid webhook signature")

    event_type = event.get("type")
    logger.info(f"Clerk webhook received: {event_type}")
    action = handle_clerk_event(db, event_type, event.get("data") or {})

    return {"success": True, "action": action}
