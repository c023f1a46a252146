"""
Housekeeping for community data: expiring old daily offers and resetting
monthly usage counters.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from esperto.models import DailyOffer, User
from esperto.services.audit import log_admin_action

logger = logging.getLogger(__name__)

CLEANUP_ACTION = "CLEANUP_OLD_OFFERS"


def cleanup_old_offers(
    db: Session,
    retention_days: int = 30,
    now: Optional[datetime] = None,
    admin_id: Optional[str] = None,
) -> dict:
    """Delete daily offers created before now - retention_days and audit the run."""
    now = now or datetime.now()
    cutoff = now - timedelta(days=retention_days)

    deleted = db.query(DailyOffer).filter(
        DailyOffer.created_at < cutoff
    ).delete(synchronize_session=False)
    db.commit()

    logger.info(f"Deleted {deleted} daily offers older than {cutoff.isoformat()}")
    log_admin_action(
        db,
        CLEANUP_ACTION,
        admin_id=admin_id,
        details={
            "deleted_count": deleted,
            "cutoff_date": cutoff.isoformat(),
            "automated": admin_id is None,
        }
    )
    return {"deleted_count": deleted, "cutoff_date": cutoff.isoformat()}


def reset_monthly_usage(db: Session, now: Optional[datetime] = None) -> int:
    """Zero every user's monthly comparison counter."""
    now = now or datetime.now()
    updated = db.query(User).filter(
        (User.comparisons_made_this_month != 0)
        | (User.last_comparison_reset_month.is_(None))
        | (User.last_comparison_reset_month != now.month)
    ).update(
        {
            User.comparisons_made_this_month: 0,
            User.last_comparison_reset_month: now.month,
        },
        synchronize_session=False
    )
    db.commit()
    logger.info(f"Reset monthly comparison usage for {updated} users")
    return updated
