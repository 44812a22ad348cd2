"""Bearer session tokens: short-lived access tokens and long-lived refresh tokens."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from uuid import UUID

from jose import JWTError, jwt

from socialfeed.config import settings

ALGORITHM = "HS256"


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


def _encode(user_id: UUID | str, token_type: TokenType, lifetime: timedelta) -> str:
    payload = {
        "sub": str(user_id),
        "type": token_type.value,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def create_access_token(user_id: UUID | str) -> str:
    return _encode(
        user_id, TokenType.ACCESS, timedelta(minutes=settings.access_token_expire_minutes)
    )


def create_refresh_token(user_id: UUID | str) -> str:
    return _encode(user_id, TokenType.REFRESH, timedelta(days=settings.refresh_token_expire_days))


def create_tokens(user_id: UUID | str) -> dict[str, str]:
    """Issue the access/refresh pair returned on register, login and refresh."""
    return {
        "access_token": create_access_token(user_id),
        "refresh_token": create_refresh_token(user_id),
    }


def decode_token(token: str, expected_type: TokenType) -> UUID | None:
    """
    Return the id of the user a token was issued to.

    Returns None when the signature or expiry check fails, when the token is
    of a different type than ``expected_type`` (a refresh token presented as
    a bearer token, for instance), or when its subject is not a user id.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])
    except JWTError:
        return None

    if payload.get("type") != expected_type.value:
        return None

    try:
        return UUID(str(payload.get("sub")))
    except ValueError:
        return None
