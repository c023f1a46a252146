"""
Policy store: admin roles, rate-limit counters and feature access.

Route handlers and services depend on the PolicyStore protocol only, so the
decisions can move to another backend (Redis, a hosted auth provider) without
touching the validator, the limiter or the feature gate.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol, runtime_checkable

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from esperto.database import get_db
from esperto.models import RateLimitEntry, Subscriber, User, UserRole
from esperto.services.plans import PlanTier, can_use_feature

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"
ADMIN_PLAN = "admin"


@runtime_checkable
class PolicyStore(Protocol):
    def is_admin(self, user_id: str) -> bool:
        ...

    def check_rate_limit(
        self,
        identifier: str,
        endpoint: str,
        max_attempts: int,
        window_minutes: int,
        block_minutes: int,
    ) -> bool:
        ...

    def check_feature_access(self, user_id: str, feature: str, current_usage: int) -> bool:
        ...


def subscription_is_active(db: Session, user: User, now: datetime | None = None) -> bool:
    """A paid plan counts only while its subscriber row is subscribed and not expired."""
    subscriber = db.query(Subscriber).filter(Subscriber.user_id == user.id).first()
    if subscriber is None or not subscriber.subscribed:
        return False

    if subscriber.subscription_end is not None:
        end = subscriber.subscription_end
        if end.tzinfo is None:
            # SQLite drops the offset; stored values are UTC
            end = end.replace(tzinfo=timezone.utc)
        reference = (now or datetime.now()).astimezone()
        if end < reference:
            return False
    return True


def effective_plan(db: Session, user: User, now: datetime | None = None) -> str:
    """Plan whose limits apply right now ('admin' means unlimited)."""
    plan = user.plan or PlanTier.FREE.value
    if plan in (ADMIN_PLAN, PlanTier.FREE.value):
        return plan
    if not subscription_is_active(db, user, now):
        logger.info(f"Subscription inactive or expired for {user.id}, applying free limits")
        return PlanTier.FREE.value
    return plan


class SqlPolicyStore:
    """PolicyStore backed by the application database."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = datetime.now):
        self.db = db
        self.clock = clock

    def is_admin(self, user_id: str) -> bool:
        role = self.db.query(UserRole).filter(
            UserRole.user_id == user_id,
            UserRole.role == ADMIN_ROLE
        ).first()
        return role is not None

    def check_rate_limit(
        self,
        identifier: str,
        endpoint: str,
        max_attempts: int,
        window_minutes: int,
        block_minutes: int,
    ) -> bool:
        """Count one attempt and report whether it is allowed."""
        try:
            return self._count_attempt(identifier, endpoint, max_attempts, window_minutes, block_minutes)
        except SQLAlchemyError:
            # The session is shared with the route handler
            self.db.rollback()
            raise

    def _count_attempt(self, identifier, endpoint, max_attempts, window_minutes, block_minutes) -> bool:
        now = self.clock()
        entry = self.db.query(RateLimitEntry).filter(
            RateLimitEntry.identifier == identifier,
            RateLimitEntry.endpoint == endpoint
        ).first()

        if entry is None:
            entry = RateLimitEntry(
                identifier=identifier,
                endpoint=endpoint,
                attempt_count=0,
                window_start=now
            )
            self.db.add(entry)

        if entry.blocked_until is not None:
            if entry.blocked_until > now:
                return False
            # Block expired: start a fresh window
            entry.blocked_until = None
            entry.attempt_count = 0
            entry.window_start = now

        if now - entry.window_start >= timedelta(minutes=window_minutes):
            entry.attempt_count = 0
            entry.window_start = now

        entry.attempt_count += 1
        allowed = entry.attempt_count <= max_attempts
        if not allowed:
            entry.blocked_until = now + timedelta(minutes=block_minutes)
            logger.warning(f"Rate limit exceeded on {endpoint} by {identifier}, blocked for {block_minutes} min")

        self.db.commit()
        return allowed

    def check_feature_access(self, user_id: str, feature: str, current_usage: int) -> bool:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            return False

        if self.is_admin(user_id):
            return True

        plan = effective_plan(self.db, user, self.clock())
        if plan == ADMIN_PLAN:
            return True
        return can_use_feature(plan, feature, current_usage)


def get_policy_store(db: Session = Depends(get_db)) -> PolicyStore:
    """Dependency providing the policy store for the current request."""
    return SqlPolicyStore(db)
