"""
User provisioning from Clerk webhook events.
"""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from esperto.models import User

logger = logging.getLogger(__name__)


def primary_email(data: dict) -> str:
    addresses = data.get("email_addresses") or []
    if addresses:
        return addresses[0].get("email_address") or ""
    return ""


def display_name(data: dict) -> Optional[str]:
    name = f"{data.get('first_name') or ''} {data.get('last_name') or ''}".strip()
    return name or None


def handle_clerk_event(db: Session, event_type: str, data: dict) -> Optional[str]:
    """
    Apply a Clerk user event. Returns the action taken, or None when the event
    is ignored or could not be persisted.
    """
    user_id = data.get("id")
    if not user_id:
        return None

    try:
        if event_type == "user.created":
            db.add(User(id=user_id, email=primary_email(data), name=display_name(data)))
            db.commit()
            logger.info(f"User {user_id} created in database")
            return "created"

        if event_type == "user.updated":
            user = db.query(User).filter(User.id == user_id).first()
            if user is None:
                logger.warning(f"User {user_id} not found for update")
                return None
            user.email = primary_email(data)
            user.name = display_name(data)
            db.commit()
            logger.info(f"User {user_id} updated in database")
            return "updated"

        if event_type == "user.deleted":
            user = db.query(User).filter(User.id == user_id).first()
            if user is None:
                logger.warning(f"User {user_id} not found for deletion")
                return None
            db.delete(user)
            db.commit()
            logger.info(f"User {user_id} deleted from database")
            return "deleted"
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error handling {event_type} for user {user_id}: {e}")
        return None

    return None
