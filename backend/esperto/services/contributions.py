"""
Contribution workflows: daily offers, catalogue price contributions and moderation.
"""
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from esperto.exceptions import NotFoundError, ValidationFailure
from esperto.models import DailyOffer, Notification, PriceContribution, User
from esperto.services.audit import log_admin_action
from esperto.services.catalogue import (
    find_or_create_product,
    find_or_create_store,
    upsert_product_price,
)
from esperto.services.contribution_validator import (
    DUPLICATE_MESSAGE,
    ContributionInput,
    ContributionValidator,
    ValidationResult,
    start_of_day,
)

logger = logging.getLogger(__name__)

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"

ANONYMOUS_CONTRIBUTOR = "Usuário Anônimo"


def contributor_name(user: User) -> str:
    return user.name or ANONYMOUS_CONTRIBUTOR


def _same_day_contributions(
    db: Session, product_id: int, store_id: int, since: datetime, until: datetime
):
    return db.query(PriceContribution).filter(
        PriceContribution.product_id == product_id,
        PriceContribution.store_id == store_id,
        PriceContribution.created_at >= since,
        PriceContribution.created_at < until,
        PriceContribution.status != REJECTED
    )


def submit_daily_offer(
    db: Session,
    user: User,
    contribution: ContributionInput,
    validator: ContributionValidator,
    clock: Callable[[], datetime] = datetime.now,
) -> tuple[DailyOffer, PriceContribution, ValidationResult]:
    """
    Validate and store a daily offer.

    The offer is also recorded as a catalogue contribution. A second user
    reporting the same product and store on the same day confirms it, so both
    contributions are approved and the offer is marked verified.

    Raises ValidationFailure for duplicates and failed validation.
    """
    now = clock()
    result = validator.validate(contribution, user.id, now=now)
    if not result.is_valid:
        raise ValidationFailure(result.message)

    today = start_of_day(now)
    tomorrow = today + timedelta(days=1)

    product = find_or_create_product(db, contribution.product_name, contribution.quantity, contribution.unit)
    store = find_or_create_store(db, contribution.store_name)

    others = _same_day_contributions(db, product.id, store.id, today, tomorrow).filter(
        PriceContribution.user_id != user.id
    ).count()
    should_approve = others > 0

    offer = DailyOffer(
        user_id=user.id,
        contributor_name=contributor_name(user),
        product_name=contribution.product_name.strip(),
        store_name=contribution.store_name.strip(),
        city=contribution.city.strip(),
        state=contribution.state.strip(),
        price=contribution.price,
        quantity=contribution.quantity,
        unit=contribution.unit,
        verified=should_approve,
        offer_date=now.date(),
        created_at=now
    )
    db.add(offer)

    record = PriceContribution(
        user_id=user.id,
        product_id=product.id,
        store_id=store.id,
        price=contribution.price,
        status=APPROVED if should_approve else PENDING,
        created_at=now
    )
    db.add(record)

    try:
        db.flush()
    except IntegrityError:
        # Concurrent submission won the race for today's slot
        db.rollback()
        logger.info(f"Duplicate daily offer rejected by constraint for {user.id}")
        raise ValidationFailure(DUPLICATE_MESSAGE)

    if should_approve:
        _same_day_contributions(db, product.id, store.id, today, tomorrow).filter(
            PriceContribution.status == PENDING
        ).update({"status": APPROVED}, synchronize_session=False)
        upsert_product_price(db, product.id, store.id, contribution.price)

    db.commit()
    db.refresh(offer)
    db.refresh(record)
    logger.info(
        f"Daily offer {offer.id} stored: {offer.product_name} @ {offer.store_name} "
        f"({offer.city}/{offer.state}) R$ {offer.price} verified={offer.verified}"
    )
    return offer, record, result


def list_daily_offers(
    db: Session,
    city: Optional[str] = None,
    state: Optional[str] = None,
    clock: Callable[[], datetime] = datetime.now,
) -> list[DailyOffer]:
    """Today's offers, newest first, optionally for one city/state."""
    today = start_of_day(clock())
    query = db.query(DailyOffer).filter(
        DailyOffer.created_at >= today,
        DailyOffer.created_at < today + timedelta(days=1)
    )
    if city:
        query = query.filter(DailyOffer.city == city.strip())
    if state:
        query = query.filter(DailyOffer.state == state.strip())
    return query.order_by(DailyOffer.created_at.desc(), DailyOffer.id.desc()).all()


def submit_price_contribution(
    db: Session,
    user: User,
    product_name: str,
    store_name: str,
    price: Decimal,
    quantity: Optional[Decimal] = None,
    unit: Optional[str] = None,
) -> PriceContribution:
    """
    Contribute a catalogue price for a product at a store.

    One live contribution per user, product and store. Approved automatically
    when another user's contribution for the pair is already approved.
    """
    product = find_or_create_product(db, product_name, quantity, unit)
    store = find_or_create_store(db, store_name)

    existing = db.query(PriceContribution).filter(
        PriceContribution.user_id == user.id,
        PriceContribution.product_id == product.id,
        PriceContribution.store_id == store.id,
        PriceContribution.status != REJECTED
    ).first()
    if existing:
        db.rollback()
        raise ValidationFailure("Você já contribuiu com este produto nesta loja")

    corroborated = db.query(PriceContribution).filter(
        PriceContribution.product_id == product.id,
        PriceContribution.store_id == store.id,
        PriceContribution.user_id != user.id,
        PriceContribution.status == APPROVED
    ).count() > 0

    contribution = PriceContribution(
        user_id=user.id,
        product_id=product.id,
        store_id=store.id,
        price=price,
        status=APPROVED if corroborated else PENDING
    )
    db.add(contribution)

    if corroborated:
        upsert_product_price(db, product.id, store.id, price)

    db.commit()
    db.refresh(contribution)
    return contribution


def _get_contribution(db: Session, contribution_id: int) -> PriceContribution:
    contribution = db.query(PriceContribution).filter(PriceContribution.id == contribution_id).first()
    if contribution is None:
        raise NotFoundError("Contribution not found")
    return contribution


def approve_contribution(db: Session, contribution_id: int, admin: User) -> PriceContribution:
    """Approve a contribution and publish its price to the catalogue."""
    contribution = _get_contribution(db, contribution_id)
    if contribution.status == APPROVED:
        raise ValidationFailure("Contribution already approved")

    contribution.status = APPROVED
    contribution.reviewed_by = admin.id
    contribution.reviewed_at = datetime.now(timezone.utc)
    contribution.rejection_reason = None
    upsert_product_price(db, contribution.product_id, contribution.store_id, contribution.price)

    db.add(Notification(
        user_id=contribution.user_id,
        type="contribution_approved",
        title="Contribuição aprovada",
        message=f"Seu preço para {contribution.product.name} foi aprovado. Obrigado!",
        data={"contribution_id": contribution.id}
    ))
    db.commit()
    db.refresh(contribution)

    log_admin_action(
        db,
        "APPROVE_CONTRIBUTION",
        admin_id=admin.id,
        target_user_id=contribution.user_id,
        details={"contribution_id": contribution.id, "price": float(contribution.price)}
    )
    return contribution


def reject_contribution(
    db: Session, contribution_id: int, admin: User, reason: Optional[str] = None
) -> PriceContribution:
    """Reject a contribution; the contributor may submit the pair again."""
    contribution = _get_contribution(db, contribution_id)
    if contribution.status == REJECTED:
        raise ValidationFailure("Contribution already rejected")

    contribution.status = REJECTED
    contribution.reviewed_by = admin.id
    contribution.reviewed_at = datetime.now(timezone.utc)
    contribution.rejection_reason = reason

    db.add(Notification(
        user_id=contribution.user_id,
        type="contribution_rejected",
        title="Contribuição rejeitada",
        message=reason or f"Seu preço para {contribution.product.name} não foi aprovado.",
        data={"contribution_id": contribution.id}
    ))
    db.commit()
    db.refresh(contribution)

    log_admin_action(
        db,
        "REJECT_CONTRIBUTION",
        admin_id=admin.id,
        target_user_id=contribution.user_id,
        details={"contribution_id": contribution.id, "reason": reason}
    )
    return contribution
