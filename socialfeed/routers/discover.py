"""Discover router: random samples of users and posts for the explore page."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from socialfeed.auth.dependencies import get_current_user
from socialfeed.database import get_db
from socialfeed.models.user import User
from socialfeed.routers.common import liked_post_ids, post_query, post_response
from socialfeed.schemas.posts import PostResponse
from socialfeed.schemas.users import DiscoverUserResponse

router = APIRouter(prefix="/api/v1/discover", tags=["Discover"])


@router.get(
    "/users",
    response_model=list[DiscoverUserResponse],
    status_code=status.HTTP_200_OK,
)
async def discover_users(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    limit: int = Query(default=10, ge=1, le=50, description="Maximum users to return"),
) -> list[DiscoverUserResponse]:
    """Return a random sample of users. Fewer than ``limit`` when there are not enough."""
    result = await db.execute(select(User).order_by(func.random()).limit(limit))

    return [
        DiscoverUserResponse(
            user_id=str(u.id),
            username=u.username,
            display_name=u.display_name,
            description=u.description or "",
            profile_pic=u.profile_pic,
        )
        for u in result.scalars().all()
    ]


@router.get(
    "/posts",
    response_model=list[PostResponse],
    status_code=status.HTTP_200_OK,
)
async def discover_posts(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    limit: int = Query(default=10, ge=1, le=50, description="Maximum posts to return"),
) -> list[PostResponse]:
    """Return a random sample of posts from any wall, newest first."""
    result = await db.execute(post_query().order_by(func.random()).limit(limit))
    posts = sorted(result.scalars().all(), key=lambda p: p.created_at, reverse=True)
    liked = await liked_post_ids(db, user.id, [p.id for p in posts])

    return [post_response(post, liked=post.id in liked) for post in posts]
