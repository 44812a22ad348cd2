"""Authentication dependencies for FastAPI endpoints."""

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from socialfeed.auth.jwt import TokenType, decode_token
from socialfeed.database import get_db
from socialfeed.models.user import User


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "error": {
                "code": "UNAUTHORIZED",
                "message": message,
            }
        },
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Validate the bearer access token and return the authenticated user.

    Raises:
        HTTPException: 401 if the token is missing, invalid, expired, or
        belongs to a user that no longer exists
    """
    if not authorization:
        raise _unauthorized("Access token required")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise _unauthorized("Invalid authorization header format")

    user_id = decode_token(token, TokenType.ACCESS)
    if user_id is None:
        raise _unauthorized("Invalid or expired access token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise _unauthorized("User not found")

    return user
