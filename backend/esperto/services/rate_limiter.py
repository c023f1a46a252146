"""
Rate limiting for write-heavy endpoints.

Counting and windowing live in the policy store. This module supplies the
default thresholds, turns a denial into a user-facing message and lets
requests through when the policy store itself is failing.
"""
import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status

from esperto.config import get_settings
from esperto.models import User
from esperto.routers.auth import get_current_user
from esperto.services.policy_store import PolicyStore, get_policy_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitOptions:
    max_attempts: int = 10
    window_minutes: int = 60
    block_minutes: int = 30

    @classmethod
    def from_settings(cls) -> "RateLimitOptions":
        settings = get_settings()
        return cls(
            max_attempts=settings.rate_limit_max_attempts,
            window_minutes=settings.rate_limit_window_minutes,
            block_minutes=settings.rate_limit_block_minutes,
        )


def blocked_message(block_minutes: int) -> str:
    return f"Muitas tentativas. Tente novamente em {block_minutes} minutos."


class RateLimiter:
    def __init__(self, policy_store: PolicyStore):
        self.policy_store = policy_store

    def check(self, endpoint: str, identifier: str, options: RateLimitOptions | None = None) -> bool:
        """True when the attempt is allowed. Errors from the policy store allow the attempt."""
        options = options or RateLimitOptions()
        try:
            return self.policy_store.check_rate_limit(
                identifier,
                endpoint,
                options.max_attempts,
                options.window_minutes,
                options.block_minutes,
            )
        except Exception as e:
            logger.error(f"Rate limit check error on {endpoint}: {e}")
            return True


def rate_limit(endpoint: str, options: RateLimitOptions | None = None):
    """
    Route dependency enforcing a rate limit per caller.

    Usage:
        @router.post("/daily-offers", dependencies=[Depends(rate_limit("contribution_submit"))])
    """
    async def dependency(
        request: Request,
        current_user: User | None = Depends(get_current_user),
        policy_store: PolicyStore = Depends(get_policy_store),
    ):
        opts = options or RateLimitOptions.from_settings()
        if current_user is not None:
            identifier = current_user.id
        else:
            identifier = request.client.host if request.client else "anonymous"

        limiter = RateLimiter(policy_store)
        if not limiter.check(endpoint, identifier, opts):
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=blocked_message(opts.block_minutes)
            )

    return dependency
