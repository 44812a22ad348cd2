"""Notification Pydantic schemas."""

from socialfeed.schemas.base import APIModel
from socialfeed.schemas.users import UserSummary


class RelatedEntity(APIModel):
    id: str
    message: str


class NotificationItem(APIModel):
    """Single notification as delivered to clients."""

    id: str
    type: str
    message: str
    is_read: bool
    created_at: str
    sender: UserSummary
    post_id: str | None = None
    comment_id: str | None = None
    related_post: RelatedEntity | None = None
    related_comment: RelatedEntity | None = None


class NotificationSummaryResponse(APIModel):
    """Unread and total notification counts."""

    unread_count: int
    total_count: int


class ListNotificationsResponse(APIModel):
    """Response for listing notifications."""

    items: list[NotificationItem]
    next_cursor: str | None
    has_more: bool


class MarkAllReadResponse(APIModel):
    """Response for marking all notifications as read."""

    marked_count: int


class DeleteAllResponse(APIModel):
    deleted_count: int
