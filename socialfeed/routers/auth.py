"""Authentication router for user registration, login and token refresh."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from socialfeed.auth.jwt import TokenType, create_tokens, decode_token
from socialfeed.auth.password import hash_password, verify_password
from socialfeed.config import settings
from socialfeed.database import get_db
from socialfeed.middleware.rate_limit import limiter
from socialfeed.models.user import User
from socialfeed.schemas.auth import LoginRequest, RefreshRequest, RegisterRequest, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "error": {
                "code": "UNAUTHORIZED",
                "message": message,
            }
        },
    )


def _conflict() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "error": {
                "code": "CONFLICT",
                "message": "Username or email already exists",
            }
        },
    )


def _token_response(user: User) -> TokenResponse:
    tokens = create_tokens(str(user.id))
    return TokenResponse(
        user_id=str(user.id),
        username=user.username,
        access_token=tokens["access_token"],
        refresh_token=tokens["refresh_token"],
    )


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.register_rate_limit)
async def register(
    request: Request,
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """
    Create a new user account.

    Returns an access/refresh token pair for the new user.
    """
    # Check for existing username or email (case-insensitive)
    existing = await db.execute(
        select(User).where(
            or_(
                func.lower(User.username) == data.username,
                func.lower(User.email) == data.email.lower(),
            )
        )
    )
    if existing.scalar_one_or_none():
        raise _conflict()

    user = User(
        username=data.username,
        email=data.email.lower(),
        password_hash=hash_password(data.password),
        display_name=data.display_name,
    )
    db.add(user)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise _conflict()

    logger.info("Registered user %s", user.username)
    return _token_response(user)


@router.post(
    "/login",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
)
@limiter.limit(settings.login_rate_limit)
async def login(
    request: Request,
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """
    Authenticate a user and issue tokens.

    Accepts username or email in the 'username' field.
    """
    identifier = data.username.strip().lower()
    result = await db.execute(
        select(User).where(
            or_(
                func.lower(User.username) == identifier,
                func.lower(User.email) == identifier,
            )
        )
    )
    user = result.scalar_one_or_none()

    # Verify user exists and password is correct
    if not user or not user.password_hash or not verify_password(data.password, user.password_hash):
        raise _unauthorized("Invalid username or password")

    return _token_response(user)


@router.post(
    "/refresh",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
)
async def refresh(
    data: RefreshRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """
    Exchange a refresh token for a new access/refresh token pair.
    """
    user_id = decode_token(data.refresh_token, TokenType.REFRESH)
    if user_id is None:
        raise _unauthorized("Invalid or expired refresh token")

    # Get user from database to verify they still exist
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise _unauthorized("User not found")

    return _token_response(user)
