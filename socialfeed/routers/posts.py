"""Posts router: reading, editing, deleting and liking posts."""

import datetime as dt
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from socialfeed.auth.dependencies import get_current_user
from socialfeed.config import settings
from socialfeed.database import get_db
from socialfeed.middleware.rate_limit import rate_limit
from socialfeed.models.comment import Comment
from socialfeed.models.post import Post, post_likes
from socialfeed.models.user import User
from socialfeed.routers.common import (
    api_error,
    count_post_likes,
    forbidden,
    get_post_or_404,
    liked_post_ids,
    post_query,
    post_response,
    threaded_comments,
)
from socialfeed.schemas.posts import (
    ListPostsResponse,
    PostResponse,
    PostWithCommentsResponse,
    ThreadedCommentResponse,
    UpdatePostRequest,
)
from socialfeed.services.notifications import (
    NotificationDispatcher,
    NotificationService,
    get_dispatcher,
)

router = APIRouter(prefix="/api/v1/posts", tags=["Posts"])


async def _load_comments(db: AsyncSession, post_id: UUID) -> list[Comment]:
    result = await db.execute(
        select(Comment)
        .options(selectinload(Comment.author))
        .where(Comment.post_id == post_id)
        .order_by(Comment.created_at)
    )
    return list(result.scalars().all())


async def _has_liked(db: AsyncSession, user_id: UUID, post_id: UUID) -> bool:
    return bool(await liked_post_ids(db, user_id, [post_id]))


# --- List Posts ---


@router.get(
    "",
    response_model=ListPostsResponse,
    status_code=status.HTTP_200_OK,
)
async def list_posts(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    cursor: str | None = Query(default=None, description="Pagination cursor"),
    limit: int = Query(default=20, ge=1, le=100, description="Items per page"),
) -> ListPostsResponse:
    """
    List recent posts across all walls with cursor-based pagination.

    Returns posts ordered by created_at descending.
    """
    query = post_query()

    # Apply cursor (cursor is the created_at timestamp)
    if cursor:
        try:
            cursor_dt = dt.datetime.fromisoformat(cursor)
            query = query.where(Post.created_at < cursor_dt)
        except ValueError:
            pass  # Invalid cursor, ignore

    query = query.order_by(Post.created_at.desc()).limit(limit + 1)

    result = await db.execute(query)
    posts = list(result.scalars().all())

    # Check if there are more items
    has_more = len(posts) > limit
    if has_more:
        posts = posts[:limit]

    liked = await liked_post_ids(db, user.id, [p.id for p in posts])
    items = [post_response(post, liked=post.id in liked) for post in posts]

    next_cursor = posts[-1].created_at.isoformat() if posts and has_more else None

    return ListPostsResponse(
        items=items,
        next_cursor=next_cursor,
        has_more=has_more,
    )


# --- Get Post ---


@router.get(
    "/{post_id}",
    response_model=PostWithCommentsResponse,
    status_code=status.HTTP_200_OK,
)
async def get_post(
    post_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> PostWithCommentsResponse:
    """Get a single post with its comments grouped into threads."""
    post = await get_post_or_404(db, post_id)
    comments = await _load_comments(db, post.id)

    return PostWithCommentsResponse(
        **post_response(post, liked=await _has_liked(db, user.id, post.id)).model_dump(),
        comments=threaded_comments(comments),
        comment_count=len(comments),
    )


@router.get(
    "/{post_id}/comments",
    response_model=list[ThreadedCommentResponse],
    status_code=status.HTTP_200_OK,
)
async def get_post_comments(
    post_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> list[ThreadedCommentResponse]:
    """
    Get a post's comments as threads.

    Each top-level comment carries all of its descendant replies in one
    flat, chronologically ordered list.
    """
    post = await get_post_or_404(db, post_id)
    return threaded_comments(await _load_comments(db, post.id))


# --- Update Post ---


@router.patch(
    "/{post_id}",
    response_model=PostResponse,
    status_code=status.HTTP_200_OK,
)
async def update_post(
    post_id: UUID,
    data: UpdatePostRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(rate_limit("post:edit", settings.post_edit_rate_limit)),
) -> PostResponse:
    """
    Update a post.

    Only the post author can update their post.
    """
    post = await get_post_or_404(db, post_id)

    # Check ownership
    if post.author_id != user.id:
        raise forbidden("You can only update your own posts")

    post.message = data.message
    if "embed" in data.model_fields_set:
        post.embed = data.embed
    post.updated_at = dt.datetime.now(dt.timezone.utc)

    await db.commit()

    return post_response(post, liked=await _has_liked(db, user.id, post.id))


# --- Delete Post ---


@router.delete(
    "/{post_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_post(
    post_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> None:
    """
    Delete a post with its comments, likes and notifications.

    Only the post author can delete their post.
    """
    post = await get_post_or_404(db, post_id)

    # Check ownership
    if post.author_id != user.id:
        raise forbidden("You can only delete your own posts")

    await db.execute(delete(Post).where(Post.id == post.id))
    await db.commit()


# --- Like / Unlike ---


@router.post(
    "/{post_id}/like",
    response_model=PostResponse,
    status_code=status.HTTP_200_OK,
)
async def like_post(
    post_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(rate_limit("post:like", settings.post_like_rate_limit)),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> PostResponse:
    """Like a post and notify its author."""
    post = await get_post_or_404(db, post_id)

    if await _has_liked(db, user.id, post.id):
        raise api_error(status.HTTP_409_CONFLICT, "CONFLICT", "You already liked this post")

    try:
        await db.execute(insert(post_likes).values(user_id=user.id, post_id=post.id))
        post.likes = await count_post_likes(db, post.id)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise api_error(status.HTTP_409_CONFLICT, "CONFLICT", "You already liked this post")

    dispatcher.dispatch(
        NotificationService.notify_post_like,
        recipient_id=post.author_id,
        sender_id=user.id,
        sender_username=user.username,
        post_id=post.id,
    )

    return post_response(post, liked=True)


@router.post(
    "/{post_id}/unlike",
    response_model=PostResponse,
    status_code=status.HTTP_200_OK,
)
async def unlike_post(
    post_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(rate_limit("post:like", settings.post_like_rate_limit)),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> PostResponse:
    """Remove the caller's like and the matching notification."""
    post = await get_post_or_404(db, post_id)

    if not await _has_liked(db, user.id, post.id):
        raise api_error(status.HTTP_409_CONFLICT, "CONFLICT", "You haven't liked this post yet")

    await db.execute(
        delete(post_likes).where(
            post_likes.c.user_id == user.id,
            post_likes.c.post_id == post.id,
        )
    )
    post.likes = await count_post_likes(db, post.id)
    await db.commit()

    dispatcher.dispatch(
        NotificationService.remove_post_like,
        recipient_id=post.author_id,
        sender_id=user.id,
        post_id=post.id,
    )

    return post_response(post, liked=False)
