"""Notification fan-out for mentions, comments, replies and likes."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from socialfeed.database import AsyncSessionLocal
from socialfeed.models.notification import Notification, NotificationType
from socialfeed.models.user import User
from socialfeed.services.mentions import extract_mentions

logger = logging.getLogger(__name__)

_MESSAGES = {
    NotificationType.MENTION_POST: "{sender} mentioned you in a post",
    NotificationType.MENTION_COMMENT: "{sender} mentioned you in a comment",
    NotificationType.COMMENT_ON_POST: "{sender} commented on your post",
    NotificationType.COMMENT_REPLY: "{sender} replied to your comment",
    NotificationType.POST_LIKE: "{sender} liked your post",
    NotificationType.COMMENT_LIKE: "{sender} liked your comment",
}


def notification_message(notification_type: NotificationType, sender_username: str | None) -> str:
    return _MESSAGES[notification_type].format(sender=sender_username or "Someone")


def like_dedupe_key(
    notification_type: NotificationType, recipient_id: UUID, sender_id: UUID, target_id: UUID
) -> str:
    return f"{notification_type.value}:{recipient_id}:{sender_id}:{target_id}"


class NotificationService:
    """
    Creates and removes notifications for a single triggering event.

    Every method returns the number of rows created (or removed) and does
    nothing when the recipient is the acting user. Nothing is committed here;
    the caller owns the transaction.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def notify_mentions(
        self,
        *,
        text: str,
        notification_type: NotificationType,
        sender_id: UUID,
        sender_username: str | None,
        post_id: UUID,
        comment_id: UUID | None = None,
    ) -> int:
        """Notify every existing user mentioned in ``text``, except the sender."""
        if notification_type not in (NotificationType.MENTION_POST, NotificationType.MENTION_COMMENT):
            raise ValueError(f"Not a mention notification type: {notification_type}")

        usernames = extract_mentions(text)
        if not usernames:
            return 0

        result = await self.db.execute(
            select(User.id).where(func.lower(User.username).in_(usernames))
        )
        recipient_ids = [user_id for user_id in result.scalars().all() if user_id != sender_id]
        if not recipient_ids:
            return 0

        message = notification_message(notification_type, sender_username)
        self.db.add_all(
            [
                Notification(
                    type=notification_type.value,
                    message=message,
                    recipient_id=recipient_id,
                    sender_id=sender_id,
                    post_id=post_id,
                    comment_id=comment_id,
                )
                for recipient_id in recipient_ids
            ]
        )
        await self.db.flush()
        return len(recipient_ids)

    async def notify_post_comment(
        self,
        *,
        recipient_id: UUID,
        sender_id: UUID,
        sender_username: str | None,
        post_id: UUID,
        comment_id: UUID,
    ) -> int:
        """Tell a post's author that someone commented on it."""
        return await self._create_one(
            NotificationType.COMMENT_ON_POST,
            recipient_id=recipient_id,
            sender_id=sender_id,
            sender_username=sender_username,
            post_id=post_id,
            comment_id=comment_id,
        )

    async def notify_comment_reply(
        self,
        *,
        recipient_id: UUID,
        sender_id: UUID,
        sender_username: str | None,
        post_id: UUID,
        comment_id: UUID,
    ) -> int:
        """Tell a comment's author that someone replied; ``comment_id`` is the reply."""
        return await self._create_one(
            NotificationType.COMMENT_REPLY,
            recipient_id=recipient_id,
            sender_id=sender_id,
            sender_username=sender_username,
            post_id=post_id,
            comment_id=comment_id,
        )

    async def notify_post_like(
        self,
        *,
        recipient_id: UUID,
        sender_id: UUID,
        sender_username: str | None,
        post_id: UUID,
    ) -> int:
        return await self._create_like(
            NotificationType.POST_LIKE,
            recipient_id=recipient_id,
            sender_id=sender_id,
            sender_username=sender_username,
            post_id=post_id,
            comment_id=None,
            target_id=post_id,
        )

    async def notify_comment_like(
        self,
        *,
        recipient_id: UUID,
        sender_id: UUID,
        sender_username: str | None,
        post_id: UUID,
        comment_id: UUID,
    ) -> int:
        return await self._create_like(
            NotificationType.COMMENT_LIKE,
            recipient_id=recipient_id,
            sender_id=sender_id,
            sender_username=sender_username,
            post_id=post_id,
            comment_id=comment_id,
            target_id=comment_id,
        )

    async def remove_post_like(self, *, recipient_id: UUID, sender_id: UUID, post_id: UUID) -> int:
        if recipient_id == sender_id:
            return 0
        return await self._delete(
            Notification.type == NotificationType.POST_LIKE.value,
            Notification.recipient_id == recipient_id,
            Notification.sender_id == sender_id,
            Notification.post_id == post_id,
        )

    async def remove_comment_like(
        self, *, recipient_id: UUID, sender_id: UUID, comment_id: UUID
    ) -> int:
        if recipient_id == sender_id:
            return 0
        return await self._delete(
            Notification.type == NotificationType.COMMENT_LIKE.value,
            Notification.recipient_id == recipient_id,
            Notification.sender_id == sender_id,
            Notification.comment_id == comment_id,
        )

    # --- helpers ---

    async def _create_one(
        self,
        notification_type: NotificationType,
        *,
        recipient_id: UUID,
        sender_id: UUID,
        sender_username: str | None,
        post_id: UUID | None,
        comment_id: UUID | None,
    ) -> int:
        if recipient_id == sender_id:
            return 0

        self.db.add(
            Notification(
                type=notification_type.value,
                message=notification_message(notification_type, sender_username),
                recipient_id=recipient_id,
                sender_id=sender_id,
                post_id=post_id,
                comment_id=comment_id,
            )
        )
        await self.db.flush()
        return 1

    async def _create_like(
        self,
        notification_type: NotificationType,
        *,
        recipient_id: UUID,
        sender_id: UUID,
        sender_username: str | None,
        post_id: UUID | None,
        comment_id: UUID | None,
        target_id: UUID,
    ) -> int:
        if recipient_id == sender_id:
            return 0

        target_column = (
            Notification.post_id
            if notification_type is NotificationType.POST_LIKE
            else Notification.comment_id
        )
        existing = await self.db.execute(
            select(Notification.id)
            .where(Notification.type == notification_type.value)
            .where(Notification.recipient_id == recipient_id)
            .where(Notification.sender_id == sender_id)
            .where(target_column == target_id)
            .limit(1)
        )
        if existing.scalar_one_or_none() is not None:
            return 0

        values = {
            "type": notification_type.value,
            "message": notification_message(notification_type, sender_username),
            "recipient_id": recipient_id,
            "sender_id": sender_id,
            "post_id": post_id,
            "comment_id": comment_id,
            "dedupe_key": like_dedupe_key(notification_type, recipient_id, sender_id, target_id),
        }
        # A concurrent like may have inserted the same row since the check above;
        # the unique dedupe_key turns that race into a no-op.
        result = await self.db.execute(self._insert_ignoring_duplicates(values))
        return result.rowcount or 0

    def _insert_ignoring_duplicates(self, values: dict[str, Any]):
        dialect = self.db.bind.dialect.name if self.db.bind is not None else ""
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert as pg_insert

            return pg_insert(Notification).values(**values).on_conflict_do_nothing(
                index_elements=["dedupe_key"]
            )
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert as sqlite_insert

            return sqlite_insert(Notification).values(**values).on_conflict_do_nothing(
                index_elements=["dedupe_key"]
            )
        return insert(Notification).values(**values)

    async def _delete(self, *criteria) -> int:
        result = await self.db.execute(delete(Notification).where(*criteria))
        return result.rowcount or 0


NotificationHandler = Callable[..., Awaitable[int]]


class NotificationDispatcher:
    """
    Runs notification side effects without blocking the request.

    Each dispatched handler gets its own session and commits on its own, after
    the primary write has been committed by the request. Failures are logged
    and dropped: they never reach the client and are not retried.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._tasks: set[asyncio.Task[int]] = set()

    def dispatch(self, handler: NotificationHandler, /, **kwargs: Any) -> asyncio.Task[int]:
        """
        Schedule ``handler(service, **kwargs)``.

        ``handler`` is an unbound ``NotificationService`` method, e.g.
        ``dispatcher.dispatch(NotificationService.notify_post_like, ...)``.
        """
        task = asyncio.create_task(self._run(handler, kwargs))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, handler: NotificationHandler, kwargs: dict[str, Any]) -> int:
        name = getattr(handler, "__name__", repr(handler))
        try:
            async with self._session_factory() as session:
                created = await handler(NotificationService(session), **kwargs)
                await session.commit()
        except Exception:
            logger.exception("Notification side effect %s failed", name)
            return 0
        logger.debug("Notification side effect %s affected %d row(s)", name, created)
        return created

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every in-flight side effect to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))


dispatcher = NotificationDispatcher(AsyncSessionLocal)


def get_dispatcher() -> NotificationDispatcher:
    """Dependency returning the process-wide notification dispatcher."""
    return dispatcher
