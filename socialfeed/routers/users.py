"""Users router for profiles and wall posts."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from socialfeed.auth.dependencies import get_current_user
from socialfeed.config import settings
from socialfeed.database import get_db
from socialfeed.middleware.rate_limit import rate_limit
from socialfeed.models.notification import NotificationType
from socialfeed.models.post import Post, post_likes
from socialfeed.models.user import User
from socialfeed.routers.common import (
    forbidden,
    liked_post_ids,
    not_found,
    post_query,
    post_response,
)
from socialfeed.schemas.posts import CreatePostRequest, PostResponse
from socialfeed.schemas.users import UpdateProfileRequest, UserMeResponse, UserProfileResponse
from socialfeed.services.notifications import (
    NotificationDispatcher,
    NotificationService,
    get_dispatcher,
)

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


async def _get_user_by_username(db: AsyncSession, username: str) -> User:
    result = await db.execute(select(User).where(func.lower(User.username) == username.lower()))
    user = result.scalar_one_or_none()
    if not user:
        raise not_found(f"User '{username}' not found")
    return user


def _me_response(user: User) -> UserMeResponse:
    return UserMeResponse(
        user_id=str(user.id),
        username=user.username,
        email=user.email,
        display_name=user.display_name,
        description=user.description or "",
        profile_pic=user.profile_pic,
        open_profile=user.open_profile,
    )


@router.get(
    "/me",
    response_model=UserMeResponse,
    status_code=status.HTTP_200_OK,
)
async def get_current_user_profile(
    user: User = Depends(get_current_user),
) -> UserMeResponse:
    """Get the authenticated user's own account, including private fields."""
    return _me_response(user)


@router.patch(
    "/me/profile",
    response_model=UserMeResponse,
    status_code=status.HTTP_200_OK,
)
async def update_current_user_profile(
    data: UpdateProfileRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> UserMeResponse:
    """
    Update the authenticated user's profile.

    Only fields present in the request body are changed; ``displayName`` may
    be cleared by sending null.
    """
    if "display_name" in data.model_fields_set:
        user.display_name = data.display_name
    if data.description is not None:
        user.description = data.description
    if data.open_profile is not None:
        user.open_profile = data.open_profile

    await db.commit()

    return _me_response(user)


@router.get(
    "/{username}",
    response_model=UserProfileResponse,
    status_code=status.HTTP_200_OK,
)
async def get_user_profile(
    username: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> UserProfileResponse:
    """
    Get a user's public profile.

    Returns public information only (no email or other private data).
    """
    profile = await _get_user_by_username(db, username)

    wall_count = await db.execute(
        select(func.count(Post.id)).where(Post.wall_owner_id == profile.id)
    )
    authored_count = await db.execute(
        select(func.count(Post.id)).where(Post.author_id == profile.id)
    )
    likes_received = await db.execute(
        select(func.count())
        .select_from(post_likes)
        .join(Post, Post.id == post_likes.c.post_id)
        .where(Post.author_id == profile.id)
    )

    return UserProfileResponse(
        user_id=str(profile.id),
        username=profile.username,
        display_name=profile.display_name,
        description=profile.description or "",
        profile_pic=profile.profile_pic,
        open_profile=profile.open_profile,
        created_at=profile.created_at.isoformat(),
        posts=wall_count.scalar() or 0,
        authored_posts=authored_count.scalar() or 0,
        likes=likes_received.scalar() or 0,
    )


# --- Wall Posts ---


@router.get(
    "/{username}/posts",
    response_model=list[PostResponse],
    status_code=status.HTTP_200_OK,
)
async def list_wall_posts(
    username: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    limit: int = Query(default=50, ge=1, le=100, description="Maximum posts to return"),
) -> list[PostResponse]:
    """List the posts on a user's wall, newest first."""
    profile = await _get_user_by_username(db, username)

    result = await db.execute(
        post_query()
        .where(Post.wall_owner_id == profile.id)
        .order_by(Post.created_at.desc())
        .limit(limit)
    )
    posts = list(result.scalars().all())
    liked = await liked_post_ids(db, user.id, [p.id for p in posts])

    return [post_response(post, liked=post.id in liked) for post in posts]


@router.post(
    "/{username}/posts",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_wall_post(
    username: str,
    data: CreatePostRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(rate_limit("post:create", settings.post_create_rate_limit)),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> PostResponse:
    """
    Create a post on a user's wall.

    Anyone may post on an open profile; a closed profile accepts posts only
    from its owner. Users mentioned in the message are notified in the
    background.
    """
    wall_owner = await _get_user_by_username(db, username)

    if not wall_owner.open_profile and wall_owner.id != user.id:
        raise forbidden("This profile is not open to posts from other users")

    post = Post(
        author_id=user.id,
        wall_owner_id=wall_owner.id,
        message=data.message,
        embed=data.embed,
    )
    db.add(post)
    await db.commit()

    dispatcher.dispatch(
        NotificationService.notify_mentions,
        text=post.message,
        notification_type=NotificationType.MENTION_POST,
        sender_id=user.id,
        sender_username=user.username,
        post_id=post.id,
    )

    post.author = user
    post.wall_owner = wall_owner
    return post_response(post)


@router.get(
    "/{username}/likes",
    response_model=list[PostResponse],
    status_code=status.HTTP_200_OK,
)
async def list_liked_posts(
    username: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    limit: int = Query(default=50, ge=1, le=100, description="Maximum posts to return"),
) -> list[PostResponse]:
    """List the posts a user has liked, most recently liked first."""
    profile = await _get_user_by_username(db, username)

    result = await db.execute(
        post_query()
        .join(post_likes, post_likes.c.post_id == Post.id)
        .where(post_likes.c.user_id == profile.id)
        .order_by(post_likes.c.created_at.desc())
        .limit(limit)
    )
    posts = list(result.scalars().all())
    liked = await liked_post_ids(db, user.id, [p.id for p in posts])

    return [post_response(post, liked=post.id in liked) for post in posts]
