"""Helpers shared by the routers: error responses and ORM-to-schema conversion."""

from collections.abc import Iterable, Sequence
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from socialfeed.models.comment import Comment
from socialfeed.models.post import Post, post_likes
from socialfeed.models.user import User
from socialfeed.schemas.posts import CommentResponse, PostResponse, ThreadedCommentResponse
from socialfeed.schemas.users import UserSummary
from socialfeed.services.threads import build_threads


def api_error(status_code: int, code: str, message: str) -> HTTPException:
    """Build an HTTPException with the standard error payload."""
    return HTTPException(
        status_code=status_code,
        detail={
            "error": {
                "code": code,
                "message": message,
            }
        },
    )


def not_found(message: str) -> HTTPException:
    return api_error(status.HTTP_404_NOT_FOUND, "NOT_FOUND", message)


def forbidden(message: str) -> HTTPException:
    return api_error(status.HTTP_403_FORBIDDEN, "FORBIDDEN", message)


def user_summary(user: User) -> UserSummary:
    return UserSummary(id=str(user.id), username=user.username, profile_pic=user.profile_pic)


def comment_response(comment: Comment) -> CommentResponse:
    """Convert a comment; ``comment.author`` must be loaded."""
    return CommentResponse(
        id=str(comment.id),
        post_id=str(comment.post_id),
        parent_comment_id=str(comment.parent_comment_id) if comment.parent_comment_id else None,
        message=comment.message,
        likes=comment.likes,
        author=user_summary(comment.author),
        created_at=comment.created_at.isoformat(),
        updated_at=comment.updated_at.isoformat(),
    )


def threaded_comments(comments: Iterable[Comment]) -> list[ThreadedCommentResponse]:
    """Group a post's comments into two-tier threads for display."""
    return [
        ThreadedCommentResponse(
            **comment_response(thread.comment).model_dump(),
            replies=[comment_response(reply) for reply in thread.replies],
        )
        for thread in build_threads(comments)
    ]


def post_response(post: Post, liked: bool = False) -> PostResponse:
    """Convert a post; ``post.author`` and ``post.wall_owner`` must be loaded."""
    return PostResponse(
        id=str(post.id),
        message=post.message,
        author=user_summary(post.author),
        wall_owner=user_summary(post.wall_owner),
        likes=post.likes,
        liked=liked,
        embed=post.embed,
        created_at=post.created_at.isoformat(),
        updated_at=post.updated_at.isoformat(),
    )


def post_query():
    """Select posts with their author and wall owner eagerly loaded."""
    return select(Post).options(selectinload(Post.author), selectinload(Post.wall_owner))


async def get_post_or_404(db: AsyncSession, post_id: UUID) -> Post:
    result = await db.execute(post_query().where(Post.id == post_id))
    post = result.scalar_one_or_none()
    if not post:
        raise not_found(f"Post '{post_id}' not found")
    return post


async def liked_post_ids(db: AsyncSession, user_id: UUID, post_ids: Sequence[UUID]) -> set[UUID]:
    """Return which of ``post_ids`` the user has liked."""
    if not post_ids:
        return set()
    result = await db.execute(
        select(post_likes.c.post_id).where(
            post_likes.c.user_id == user_id,
            post_likes.c.post_id.in_(post_ids),
        )
    )
    return set(result.scalars().all())


async def count_post_likes(db: AsyncSession, post_id: UUID) -> int:
    result = await db.execute(
        select(func.count()).select_from(post_likes).where(post_likes.c.post_id == post_id)
    )
    return result.scalar() or 0
