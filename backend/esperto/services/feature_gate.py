"""
Plan-based feature gating.

`validate_feature_access` asks the policy store and falls back to the local
plan table when the store cannot answer; it is not an authorization boundary.
"""
import logging
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from esperto.models import User
from esperto.services.plans import COMPARISONS_PER_MONTH, PlanTier, can_use_feature
from esperto.services.policy_store import ADMIN_PLAN, PolicyStore, subscription_is_active

logger = logging.getLogger(__name__)


def current_month_usage(user: User, today: date) -> int:
    """Comparisons made this month; a counter from an earlier month counts as zero."""
    if user.last_comparison_reset_month != today.month:
        return 0
    return user.comparisons_made_this_month or 0


class FeatureGate:
    def __init__(self, db: Session, policy_store: PolicyStore):
        self.db = db
        self.policy_store = policy_store

    def validate_feature_access(self, user: User, feature: str, current_usage: int = 0) -> bool:
        if user.plan == ADMIN_PLAN:
            return True

        plan = user.plan or PlanTier.FREE.value
        if plan != PlanTier.FREE.value:
            try:
                if not subscription_is_active(self.db, user):
                    logger.info(f"Expired or inactive subscription for {user.id}, using free limits")
                    return can_use_feature(PlanTier.FREE, feature, current_usage)
            except SQLAlchemyError as e:
                logger.error(f"Subscription lookup failed for {user.id}: {e}")
                return can_use_feature(PlanTier.FREE, feature, current_usage)

        try:
            return self.policy_store.check_feature_access(user.id, feature, current_usage)
        except Exception as e:
            logger.error(f"Feature access check failed for {user.id} ({feature}): {e}")
            return can_use_feature(plan, feature, current_usage)

    def increment_usage_counter(self, user: User, feature: str, today: date | None = None) -> None:
        """Count one use of a metered feature. Only monthly comparisons are metered."""
        if feature != COMPARISONS_PER_MONTH:
            return

        today = today or date.today()
        usage = current_month_usage(user, today)
        user.comparisons_made_this_month = usage + 1
        user.last_comparison_reset_month = today.month
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to increment usage counter for {user.id}: {e}")
