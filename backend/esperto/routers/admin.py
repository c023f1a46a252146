"""Admin API endpoints for moderation and monitoring."""
import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import desc

from esperto.config import get_settings
from esperto.database import get_db
from esperto.logging_config import mask_email
from esperto.models import DailyOffer, PriceAlert, PriceContribution, User
from esperto.routers.auth import require_admin
from esperto.routers.contributions import contribution_to_schema
from esperto.schemas.contribution import AdminContribution, RejectRequest
from esperto.services.cache import CacheService, get_cache
from esperto.services.contribution_validator import start_of_day
from esperto.services.contributions import (
    APPROVED, PENDING, REJECTED, approve_contribution, reject_contribution,
)
from esperto.services.offer_cleanup import cleanup_old_offers
from esperto.tasks.scheduler import get_scheduler_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class AdminUser(BaseModel):
    id: str
    email: str
    name: Optional[str]
    plan: str
    is_online: bool
    is_active: bool
    last_activity: Optional[datetime]
    created_at: Optional[datetime]


class AdminStats(BaseModel):
    total_users: int
    online_users: int
    offers_today: int
    pending_contributions: int
    active_alerts: int


def _admin_contribution(contribution: PriceContribution) -> AdminContribution:
    user = contribution.user
    return AdminContribution(**contribution_to_schema(
        contribution,
        contributor_email=mask_email(user.email if user else None),
        contributor_name=user.name if user else None
    ))


@router.get("/contributions", response_model=list[AdminContribution])
def list_contributions(
    status: Optional[str] = Query(None, description="pending, approved or rejected"),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Contributions awaiting or past moderation, newest first."""
    query = db.query(PriceContribution).options(
        joinedload(PriceContribution.user),
        joinedload(PriceContribution.product),
        joinedload(PriceContribution.store)
    )
    if status:
        if status not in (PENDING, APPROVED, REJECTED):
            raise HTTPException(status_code=400, detail="Invalid status filter")
        query = query.filter(PriceContribution.status == status)

    contributions = query.order_by(desc(PriceContribution.created_at), desc(PriceContribution.id)).all()
    return [_admin_contribution(c) for c in contributions]


@router.post("/contributions/{contribution_id}/approve", response_model=AdminContribution)
async def approve(
    contribution_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache)
):
    contribution = approve_contribution(db, contribution_id, admin)
    await cache.invalidate_catalogue()
    logger.info(f"Contribution {contribution_id} approved by {admin.id}")
    return _admin_contribution(contribution)


@router.post("/contributions/{contribution_id}/reject", response_model=AdminContribution)
def reject(
    contribution_id: int,
    body: Optional[RejectRequest] = None,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    contribution = reject_contribution(db, contribution_id, admin, body.reason if body else None)
    logger.info(f"Contribution {contribution_id} rejected by {admin.id}")
    return _admin_contribution(contribution)


@router.get("/users", response_model=list[AdminUser])
def list_users(
    skip: int = 0,
    limit: int = Query(100, le=500),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Registered users with masked emails."""
    users = db.query(User).order_by(desc(User.created_at), User.id).offset(skip).limit(limit).all()
    return [
        AdminUser(
            id=u.id,
            email=mask_email(u.email),
            name=u.name,
            plan=u.plan or "free",
            is_online=bool(u.is_online),
            is_active=bool(u.is_active),
            last_activity=u.last_activity,
            created_at=u.created_at
        )
        for u in users
    ]


@router.get("/stats", response_model=AdminStats)
def get_stats(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    today = start_of_day(datetime.now())
    return AdminStats(
        total_users=db.query(User).count(),
        online_users=db.query(User).filter(User.is_online == True).count(),
        offers_today=db.query(DailyOffer).filter(
            DailyOffer.created_at >= today,
            DailyOffer.created_at < today + timedelta(days=1)
        ).count(),
        pending_contributions=db.query(PriceContribution).filter(
            PriceContribution.status == PENDING
        ).count(),
        active_alerts=db.query(PriceAlert).filter(PriceAlert.is_active == True).count()
    )


@router.post("/cleanup-offers")
async def run_cleanup(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache)
):
    """Delete expired daily offers now instead of waiting for the nightly job."""
    result = cleanup_old_offers(
        db,
        retention_days=get_settings().offer_retention_days,
        admin_id=admin.id
    )
    await cache.invalidate_offers()
    return result


@router.get("/scheduler")
def scheduler_status(admin: User = Depends(require_admin)):
    """Get scheduler status and last run results."""
    return get_scheduler_status()
