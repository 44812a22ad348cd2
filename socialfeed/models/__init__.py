"""Database models for the SocialFeed API."""

from socialfeed.models.comment import Comment, comment_likes
from socialfeed.models.notification import Notification, NotificationType
from socialfeed.models.post import Post, post_likes
from socialfeed.models.user import User

__all__ = [
    "User",
    "Post",
    "post_likes",
    "Comment",
    "comment_likes",
    "Notification",
    "NotificationType",
]
