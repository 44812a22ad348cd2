"""Pydantic schemas for request/response validation."""

from socialfeed.schemas.auth import LoginRequest, RefreshRequest, RegisterRequest, TokenResponse
from socialfeed.schemas.notifications import NotificationItem
from socialfeed.schemas.posts import (
    CommentResponse,
    CreateCommentRequest,
    CreatePostRequest,
    PostResponse,
    ThreadedCommentResponse,
)
from socialfeed.schemas.users import UserSummary

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "RefreshRequest",
    "TokenResponse",
    "UserSummary",
    "CreatePostRequest",
    "PostResponse",
    "CreateCommentRequest",
    "CommentResponse",
    "ThreadedCommentResponse",
    "NotificationItem",
]
