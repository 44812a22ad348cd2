"""Services for the SocialFeed API."""

from socialfeed.services.mentions import extract_mentions
from socialfeed.services.notifications import NotificationDispatcher, NotificationService
from socialfeed.services.rate_limiter import RateLimitRule, SlidingWindowRateLimiter
from socialfeed.services.threads import CommentThread, build_threads

__all__ = [
    "extract_mentions",
    "NotificationService",
    "NotificationDispatcher",
    "RateLimitRule",
    "SlidingWindowRateLimiter",
    "CommentThread",
    "build_threads",
]
