"""
Contributions router: community price reports.

Daily offers are validated against today's offers before they are stored.
Duplicates for the same product and store on the same day are rejected; prices
far from the city's mean are accepted with a warning.
"""
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import desc

from esperto.config import get_settings
from esperto.database import get_db
from esperto.models import DailyOffer, PriceContribution, User
from esperto.routers.auth import require_auth
from esperto.schemas.contribution import (
    ContributionRequest,
    DailyOffer as DailyOfferSchema,
    DailyOfferSubmitted,
    PriceContribution as PriceContributionSchema,
    PriceContributionCreate,
    ValidationResponse,
)
from esperto.services.alerts import alert_emails, process_offer_alerts, send_emails
from esperto.services.cache import CacheService, get_cache
from esperto.services.contribution_validator import ContributionInput, ContributionValidator
from esperto.services.contributions import (
    list_daily_offers, submit_daily_offer, submit_price_contribution,
)
from esperto.services.email_service import EmailService, get_email_service
from esperto.services.offer_store import SqlOfferRepository
from esperto.services.rate_limiter import rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contributions", tags=["contributions"])


def get_validator(db: Session = Depends(get_db)) -> ContributionValidator:
    """Dependency providing a validator over the offers table."""
    return ContributionValidator(
        SqlOfferRepository(db),
        outlier_threshold=get_settings().price_outlier_threshold
    )


def _to_input(data: ContributionRequest) -> ContributionInput:
    return ContributionInput(
        product_name=data.product_name,
        store_name=data.store_name,
        city=data.city,
        state=data.state,
        price=data.price,
        quantity=data.quantity,
        unit=data.unit
    )


def offer_to_schema(offer: DailyOffer) -> DailyOfferSchema:
    return DailyOfferSchema(
        id=offer.id,
        user_id=offer.user_id,
        contributor_name=offer.contributor_name,
        product_name=offer.product_name,
        store_name=offer.store_name,
        city=offer.city,
        state=offer.state,
        price=float(offer.price),
        quantity=float(offer.quantity) if offer.quantity is not None else None,
        unit=offer.unit,
        verified=offer.verified,
        offer_date=offer.offer_date,
        created_at=offer.created_at
    )


def contribution_to_schema(contribution: PriceContribution, **extra) -> dict:
    return dict(
        id=contribution.id,
        user_id=contribution.user_id,
        product_id=contribution.product_id,
        product_name=contribution.product.name,
        store_id=contribution.store_id,
        store_name=contribution.store.name,
        price=float(contribution.price),
        status=contribution.status,
        rejection_reason=contribution.rejection_reason,
        reviewed_at=contribution.reviewed_at,
        created_at=contribution.created_at,
        **extra
    )


@router.post("/validate", response_model=ValidationResponse)
def validate_contribution(
    data: ContributionRequest,
    user: User = Depends(require_auth),
    validator: ContributionValidator = Depends(get_validator)
):
    """Check a contribution without storing it."""
    result = validator.validate(_to_input(data), user.id)
    return ValidationResponse(
        is_valid=result.is_valid,
        message=result.message,
        price_difference=result.price_difference
    )


@router.post(
    "/daily-offers",
    response_model=DailyOfferSubmitted,
    status_code=201,
    dependencies=[Depends(rate_limit("contribution_submit"))]
)
async def create_daily_offer(
    data: ContributionRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(require_auth),
    validator: ContributionValidator = Depends(get_validator),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    email_service: EmailService = Depends(get_email_service)
):
    """
    Share a price seen in a store today.

    Rejected with 400 when the caller already reported this product at this
    store today. Accepted offers may trigger other users' price alerts.
    """
    offer, record, result = submit_daily_offer(db, user, _to_input(data), validator)

    triggered = process_offer_alerts(db, offer)
    messages = alert_emails(triggered, offer.price, offer.store_name)
    if messages:
        background_tasks.add_task(send_emails, messages, email_service)

    await cache.invalidate_offers()
    if record.status == "approved":
        await cache.invalidate_catalogue()

    return DailyOfferSubmitted(
        offer=offer_to_schema(offer),
        contribution_id=record.id,
        status=record.status,
        warning=result.message if result.is_outlier else None,
        price_difference=result.price_difference
    )


@router.get("/daily-offers", response_model=list[DailyOfferSchema])
async def get_daily_offers(
    city: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache)
):
    """Today's offers, newest first."""
    params = {"city": city, "state": state}
    cached = await cache.get_daily_offers(params)
    if cached is not None:
        return cached

    offers = [offer_to_schema(o).model_dump(mode="json") for o in list_daily_offers(db, city, state)]
    await cache.set_daily_offers(params, offers)
    return offers


@router.get("/prices", response_model=list[PriceContributionSchema])
def get_my_contributions(
    user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    """The caller's catalogue contributions, newest first."""
    contributions = db.query(PriceContribution).options(
        joinedload(PriceContribution.product),
        joinedload(PriceContribution.store)
    ).filter(
        PriceContribution.user_id == user.id
    ).order_by(desc(PriceContribution.created_at), desc(PriceContribution.id)).all()
    return [contribution_to_schema(c) for c in contributions]


@router.post("/prices", response_model=PriceContributionSchema, status_code=201)
async def create_price_contribution(
    data: PriceContributionCreate,
    user: User = Depends(require_auth),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache)
):
    """Contribute a catalogue price without publishing a daily offer."""
    contribution = submit_price_contribution(
        db, user, data.product_name, data.store_name, data.price, data.quantity, data.unit
    )
    if contribution.status == "approved":
        await cache.invalidate_catalogue()
    return contribution_to_schema(contribution)
