"""Comments router: threaded comments, edits, cascading deletes and likes."""

import datetime as dt
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from socialfeed.auth.dependencies import get_current_user
from socialfeed.config import settings
from socialfeed.database import get_db
from socialfeed.middleware.rate_limit import rate_limit
from socialfeed.models.comment import Comment, comment_likes
from socialfeed.models.notification import NotificationType
from socialfeed.models.post import Post
from socialfeed.models.user import User
from socialfeed.routers.common import (
    api_error,
    comment_response,
    not_found,
    user_summary,
)
from socialfeed.schemas.posts import (
    CommentResponse,
    CreateCommentRequest,
    CreatedCommentResponse,
    ParentCommentPreview,
    UpdateCommentRequest,
)
from socialfeed.services.notifications import (
    NotificationDispatcher,
    NotificationService,
    get_dispatcher,
)
from socialfeed.services.threads import collect_descendant_ids

router = APIRouter(prefix="/api/v1/comments", tags=["Comments"])


async def _get_comment_or_404(db: AsyncSession, comment_id: UUID) -> Comment:
    result = await db.execute(
        select(Comment).options(selectinload(Comment.author)).where(Comment.id == comment_id)
    )
    comment = result.scalar_one_or_none()
    if not comment:
        raise not_found(f"Comment '{comment_id}' not found")
    return comment


async def _get_own_comment_or_404(db: AsyncSession, comment_id: UUID, user: User) -> Comment:
    comment = await _get_comment_or_404(db, comment_id)
    if comment.author_id != user.id:
        raise not_found("Comment not found or you are not the author")
    return comment


async def _has_liked(db: AsyncSession, user_id: UUID, comment_id: UUID) -> bool:
    result = await db.execute(
        select(comment_likes.c.user_id).where(
            comment_likes.c.user_id == user_id,
            comment_likes.c.comment_id == comment_id,
        )
    )
    return result.first() is not None


async def _count_likes(db: AsyncSession, comment_id: UUID) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(comment_likes)
        .where(comment_likes.c.comment_id == comment_id)
    )
    return result.scalar() or 0


# --- Create Comment ---


@router.post(
    "",
    response_model=CreatedCommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    data: CreateCommentRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(rate_limit("comment:create", settings.comment_create_rate_limit)),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> CreatedCommentResponse:
    """
    Add a comment to a post, or a reply to another comment on the same post.

    Mentioned users, the post author and (for replies) the parent comment's
    author are notified in the background.
    """
    result = await db.execute(select(Post).where(Post.id == data.post_id))
    post = result.scalar_one_or_none()
    if not post:
        raise not_found(f"Post '{data.post_id}' not found")

    parent = None
    if data.parent_comment_id is not None:
        result = await db.execute(
            select(Comment)
            .options(selectinload(Comment.author))
            .where(Comment.id == data.parent_comment_id)
        )
        parent = result.scalar_one_or_none()
        if not parent:
            raise not_found(f"Parent comment '{data.parent_comment_id}' not found")
        if parent.post_id != post.id:
            raise api_error(
                status.HTTP_400_BAD_REQUEST,
                "INVALID_PARENT",
                "Parent comment must belong to the same post",
            )

    comment = Comment(
        post_id=post.id,
        author_id=user.id,
        parent_comment_id=parent.id if parent else None,
        message=data.message,
    )
    db.add(comment)
    await db.commit()

    # Side effects run only after the comment is committed
    dispatcher.dispatch(
        NotificationService.notify_mentions,
        text=comment.message,
        notification_type=NotificationType.MENTION_COMMENT,
        sender_id=user.id,
        sender_username=user.username,
        post_id=post.id,
        comment_id=comment.id,
    )
    dispatcher.dispatch(
        NotificationService.notify_post_comment,
        recipient_id=post.author_id,
        sender_id=user.id,
        sender_username=user.username,
        post_id=post.id,
        comment_id=comment.id,
    )
    if parent is not None:
        dispatcher.dispatch(
            NotificationService.notify_comment_reply,
            recipient_id=parent.author_id,
            sender_id=user.id,
            sender_username=user.username,
            post_id=post.id,
            comment_id=comment.id,
        )

    comment.author = user
    return CreatedCommentResponse(
        **comment_response(comment).model_dump(),
        parent_comment=ParentCommentPreview(
            id=str(parent.id),
            message=parent.message,
            author=user_summary(parent.author),
        )
        if parent
        else None,
    )


# --- Get Comment ---


@router.get(
    "/{comment_id}",
    response_model=CommentResponse,
    status_code=status.HTTP_200_OK,
)
async def get_comment(
    comment_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> CommentResponse:
    """Get a single comment by ID."""
    return comment_response(await _get_comment_or_404(db, comment_id))


# --- Update Comment ---


@router.patch(
    "/{comment_id}",
    response_model=CommentResponse,
    status_code=status.HTTP_200_OK,
)
async def update_comment(
    comment_id: UUID,
    data: UpdateCommentRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(rate_limit("comment:edit", settings.comment_edit_rate_limit)),
) -> CommentResponse:
    """
    Update a comment's message.

    Only the comment author can edit it.
    """
    comment = await _get_own_comment_or_404(db, comment_id, user)

    comment.message = data.message
    comment.updated_at = dt.datetime.now(dt.timezone.utc)
    await db.commit()

    return comment_response(comment)


# --- Delete Comment ---


@router.delete(
    "/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_comment(
    comment_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> None:
    """
    Delete a comment together with every reply beneath it.

    Only the comment author can delete it.
    """
    comment = await _get_own_comment_or_404(db, comment_id, user)

    result = await db.execute(
        select(Comment.id, Comment.parent_comment_id, Comment.created_at).where(
            Comment.post_id == comment.post_id
        )
    )
    siblings = result.all()
    doomed = [comment.id, *collect_descendant_ids(siblings, comment.id)]

    await db.execute(delete(Comment).where(Comment.id.in_(doomed)))
    await db.commit()


# --- Like / Unlike ---


@router.post(
    "/{comment_id}/like",
    response_model=CommentResponse,
    status_code=status.HTTP_200_OK,
)
async def like_comment(
    comment_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(rate_limit("comment:like", settings.comment_like_rate_limit)),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> CommentResponse:
    """Like a comment and notify its author."""
    comment = await _get_comment_or_404(db, comment_id)

    if await _has_liked(db, user.id, comment.id):
        raise api_error(status.HTTP_409_CONFLICT, "CONFLICT", "You already liked this comment")

    try:
        await db.execute(insert(comment_likes).values(user_id=user.id, comment_id=comment.id))
        comment.likes = await _count_likes(db, comment.id)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise api_error(status.HTTP_409_CONFLICT, "CONFLICT", "You already liked this comment")

    dispatcher.dispatch(
        NotificationService.notify_comment_like,
        recipient_id=comment.author_id,
        sender_id=user.id,
        sender_username=user.username,
        post_id=comment.post_id,
        comment_id=comment.id,
    )

    return comment_response(comment)


@router.post(
    "/{comment_id}/unlike",
    response_model=CommentResponse,
    status_code=status.HTTP_200_OK,
)
async def unlike_comment(
    comment_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(rate_limit("comment:like", settings.comment_like_rate_limit)),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> CommentResponse:
    """Remove the caller's like and the matching notification."""
    comment = await _get_comment_or_404(db, comment_id)

    if not await _has_liked(db, user.id, comment.id):
        raise api_error(
            status.HTTP_409_CONFLICT, "CONFLICT", "You haven't liked this comment yet"
        )

    await db.execute(
        delete(comment_likes).where(
            comment_likes.c.user_id == user.id,
            comment_likes.c.comment_id == comment.id,
        )
    )
    comment.likes = await _count_likes(db, comment.id)
    await db.commit()

    dispatcher.dispatch(
        NotificationService.remove_comment_like,
        recipient_id=comment.author_id,
        sender_id=user.id,
        comment_id=comment.id,
    )

    return comment_response(comment)
