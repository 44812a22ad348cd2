"""Authentication schemas for request/response validation."""

import re

from pydantic import EmailStr, field_validator

from socialfeed.schemas.base import APIModel

USERNAME_PATTERN = re.compile(r"^[a-z0-9_-]{3,30}$")


class RegisterRequest(APIModel):
    """User registration request schema."""

    username: str
    email: EmailStr
    password: str
    display_name: str | None = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Usernames are case-insensitive: 3-30 letters, digits, underscores or hyphens."""
        v = v.strip().lower()
        if not USERNAME_PATTERN.match(v):
            raise ValueError(
                "Username must be 3-30 characters: letters, numbers, underscores and hyphens only"
            )
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Validate password complexity requirements."""
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        if not any(c.isupper() for c in v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not any(c.islower() for c in v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not any(c.isdigit() for c in v):
            raise ValueError("Password must contain at least one digit")
        return v


class LoginRequest(APIModel):
    """User login request schema."""

    username: str  # Can be username or email
    password: str


class RefreshRequest(APIModel):
    refresh_token: str


class TokenResponse(APIModel):
    """Tokens issued on register, login and refresh."""

    user_id: str
    username: str
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
