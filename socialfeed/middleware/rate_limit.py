"""Rate limiting: per-IP limits via slowapi and per-user sliding windows."""

from fastapi import Depends, HTTPException, status
from slowapi import Limiter
from slowapi.util import get_remote_address

from socialfeed.auth.dependencies import get_current_user
from socialfeed.models.user import User
from socialfeed.services.rate_limiter import RateLimitRule, SlidingWindowRateLimiter

# IP-based limiter for unauthenticated endpoints (register, login)
limiter = Limiter(key_func=get_remote_address)

# Per-user limiter for create/edit/like actions
user_limiter = SlidingWindowRateLimiter()


def get_limiter() -> Limiter:
    """Get the global limiter instance."""
    return limiter


def get_user_limiter() -> SlidingWindowRateLimiter:
    """Dependency returning the per-user sliding window limiter."""
    return user_limiter


def rate_limit(action: str, limit: str):
    """
    Dependency factory enforcing a per-user sliding window on an action.

    ``limit`` is a limit string such as ``"10/minute"``. Resolves to the
    authenticated user when the call is allowed; otherwise responds 429
    before the endpoint body (and any side effect) runs.
    """
    rule = RateLimitRule.parse(limit)

    async def check_rate_limit(
        user: User = Depends(get_current_user),
        sliding_window: SlidingWindowRateLimiter = Depends(get_user_limiter),
    ) -> User:
        if not await sliding_window.allow(user.id, action, rule):
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={
                    "error": {
                        "code": "RATE_LIMITED",
                        "message": "Too many requests. Please try again later.",
                        "retry_after": rule.retry_after_seconds,
                    }
                },
                headers={"Retry-After": str(rule.retry_after_seconds)},
            )
        return user

    return check_rate_limit


async def reset_limiters() -> None:
    """Reset all rate limit state. Used in tests to clear limits between cases."""
    if hasattr(limiter, "_limiter") and limiter._limiter:
        storage = limiter._limiter.storage
        if hasattr(storage, "reset"):
            storage.reset()
    await user_limiter.reset()
