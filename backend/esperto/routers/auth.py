"""
Authentication dependencies and profile endpoint.

Session tokens are issued by the auth provider; this module only verifies them.
"""
import logging
from datetime import date

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from esperto.database import get_db
from esperto.exceptions import ForbiddenError, UnauthorizedError
from esperto.services.auth import get_current_user_from_token, touch_activity
from esperto.services.feature_gate import current_month_usage
from esperto.services.plans import COMPARISONS_PER_MONTH, UNLIMITED, get_feature_limit
from esperto.services.policy_store import ADMIN_PLAN, PolicyStore, effective_plan, get_policy_store
from esperto.models import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
security = HTTPBearer(auto_error=False)


# ============== Schemas ==============

class UserResponse(BaseModel):
    id: str
    email: str
    name: Optional[str]
    plan: str
    effective_plan: str
    comparisons_made_this_month: int
    comparisons_limit: int
    is_admin: bool


# ============== Dependencies ==============

async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Get the current authenticated user (optional)."""
    if credentials is None:
        return None

    return get_current_user_from_token(db, credentials.credentials)


async def require_auth(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Require authentication - raises 401 if not authenticated."""
    if credentials is None:
        raise UnauthorizedError()

    user = get_current_user_from_token(db, credentials.credentials)
    if user is None:
        raise UnauthorizedError("Invalid or expired token")

    if not user.is_active:
        raise ForbiddenError("User account is disabled")

    request.state.user_id = user.id
    touch_activity(db, user)
    return user


async def require_admin(
    user: User = Depends(require_auth),
    policy_store: PolicyStore = Depends(get_policy_store)
) -> User:
    """Require the admin role - raises 403 otherwise, including when the check itself fails."""
    try:
        allowed = policy_store.is_admin(user.id)
    except Exception as e:
        logger.error(f"Admin verification failed for {user.id}: {e}")
        allowed = False

    if not allowed:
        raise ForbiddenError("Admin access required")
    return user


# ============== Endpoints ==============

@router.get("/me", response_model=UserResponse)
def get_me(
    user: User = Depends(require_auth),
    policy_store: PolicyStore = Depends(get_policy_store),
    db: Session = Depends(get_db)
):
    """
    Get the current authenticated user's profile.

    Includes the plan whose limits currently apply and this month's usage.
    """
    plan = effective_plan(db, user)
    is_admin = policy_store.is_admin(user.id)
    return UserResponse(
        id=user.id,
        email=user.email or "",
        name=user.name,
        plan=user.plan or "free",
        effective_plan=plan,
        comparisons_made_this_month=current_month_usage(user, date.today()),
        comparisons_limit=UNLIMITED if plan == ADMIN_PLAN or is_admin else get_feature_limit(plan, COMPARISONS_PER_MONTH),
        is_admin=is_admin,
    )
