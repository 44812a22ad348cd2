"""Notifications router: listing, reading and clearing a user's notifications."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from socialfeed.auth.dependencies import get_current_user
from socialfeed.database import get_db
from socialfeed.models.notification import Notification
from socialfeed.models.user import User
from socialfeed.routers.common import not_found, user_summary
from socialfeed.schemas.notifications import (
    DeleteAllResponse,
    ListNotificationsResponse,
    MarkAllReadResponse,
    NotificationItem,
    NotificationSummaryResponse,
    RelatedEntity,
)

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


def _notification_item(n: Notification) -> NotificationItem:
    """Convert a notification with its sender and related entities loaded."""
    return NotificationItem(
        id=str(n.id),
        type=n.type,
        message=n.message,
        is_read=n.is_read,
        created_at=n.created_at.isoformat(),
        sender=user_summary(n.sender),
        post_id=str(n.post_id) if n.post_id else None,
        comment_id=str(n.comment_id) if n.comment_id else None,
        related_post=RelatedEntity(id=str(n.related_post.id), message=n.related_post.message)
        if n.related_post
        else None,
        related_comment=RelatedEntity(
            id=str(n.related_comment.id), message=n.related_comment.message
        )
        if n.related_comment
        else None,
    )


async def _get_own_notification_or_404(
    db: AsyncSession, notification_id: UUID, user: User
) -> Notification:
    result = await db.execute(
        select(Notification)
        .options(
            selectinload(Notification.sender),
            selectinload(Notification.related_post),
            selectinload(Notification.related_comment),
        )
        .where(
            Notification.id == notification_id,
            Notification.recipient_id == user.id,
        )
    )
    notification = result.scalar_one_or_none()

    if not notification:
        raise not_found(f"Notification '{notification_id}' not found")
    return notification


# --- Notification Summary ---


@router.get(
    "/summary",
    response_model=NotificationSummaryResponse,
    status_code=status.HTTP_200_OK,
)
async def get_notification_summary(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> NotificationSummaryResponse:
    """Return counts of unread and total notifications."""
    unread_result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.recipient_id == user.id,
            Notification.is_read.is_(False),
        )
    )
    unread_count = unread_result.scalar() or 0

    total_result = await db.execute(
        select(func.count(Notification.id)).where(Notification.recipient_id == user.id)
    )
    total_count = total_result.scalar() or 0

    return NotificationSummaryResponse(
        unread_count=unread_count,
        total_count=total_count,
    )


# --- List Notifications ---


@router.get(
    "",
    response_model=ListNotificationsResponse,
    status_code=status.HTTP_200_OK,
)
async def list_notifications(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    cursor: str | None = Query(default=None, description="Pagination cursor"),
    limit: int = Query(default=20, ge=1, le=100, description="Items per page"),
    unread_only: bool = Query(
        default=False, alias="unreadOnly", description="Show only unread notifications"
    ),
) -> ListNotificationsResponse:
    """
    List notifications with cursor-based pagination.

    Returns notifications ordered by created_at descending.
    """
    query = (
        select(Notification)
        .options(
            selectinload(Notification.sender),
            selectinload(Notification.related_post),
            selectinload(Notification.related_comment),
        )
        .where(Notification.recipient_id == user.id)
    )

    # Filter unread only
    if unread_only:
        query = query.where(Notification.is_read.is_(False))

    # Apply cursor (cursor is the created_at timestamp)
    if cursor:
        try:
            cursor_dt = datetime.fromisoformat(cursor)
            query = query.where(Notification.created_at < cursor_dt)
        except ValueError:
            pass  # Invalid cursor, ignore

    query = query.order_by(Notification.created_at.desc()).limit(limit + 1)

    result = await db.execute(query)
    notifications = list(result.scalars().all())

    # Check if there are more items
    has_more = len(notifications) > limit
    if has_more:
        notifications = notifications[:limit]

    items = [_notification_item(n) for n in notifications]

    next_cursor = notifications[-1].created_at.isoformat() if notifications and has_more else None

    return ListNotificationsResponse(
        items=items,
        next_cursor=next_cursor,
        has_more=has_more,
    )


# --- Mark All Notifications as Read ---


@router.post(
    "/read-all",
    response_model=MarkAllReadResponse,
    status_code=status.HTTP_200_OK,
)
async def mark_all_notifications_read(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> MarkAllReadResponse:
    """Mark all unread notifications as read."""
    result = await db.execute(
        update(Notification)
        .where(
            Notification.recipient_id == user.id,
            Notification.is_read.is_(False),
        )
        .values(is_read=True)
    )
    marked_count = result.rowcount or 0
    await db.commit()

    return MarkAllReadResponse(marked_count=marked_count)


# --- Mark Notification as Read ---


@router.post(
    "/{notification_id}/read",
    response_model=NotificationItem,
    status_code=status.HTTP_200_OK,
)
async def mark_notification_read(
    notification_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> NotificationItem:
    """Mark a single notification as read."""
    notification = await _get_own_notification_or_404(db, notification_id, user)

    # Mark as read if not already
    if not notification.is_read:
        notification.is_read = True
        await db.commit()

    return _notification_item(notification)


# --- Delete Notifications ---


@router.delete(
    "",
    response_model=DeleteAllResponse,
    status_code=status.HTTP_200_OK,
)
async def delete_all_notifications(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> DeleteAllResponse:
    """Delete every notification addressed to the caller."""
    result = await db.execute(delete(Notification).where(Notification.recipient_id == user.id))
    deleted_count = result.rowcount or 0
    await db.commit()

    return DeleteAllResponse(deleted_count=deleted_count)


@router.delete(
    "/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_notification(
    notification_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> None:
    """Delete a notification."""
    notification = await _get_own_notification_or_404(db, notification_id, user)

    await db.delete(notification)
    await db.commit()
