"""Authentication utilities for the SocialFeed API."""

from socialfeed.auth.jwt import (
    TokenType,
    create_access_token,
    create_refresh_token,
    create_tokens,
    decode_token,
)
from socialfeed.auth.password import hash_password, verify_password

__all__ = [
    "hash_password",
    "verify_password",
    "create_access_token",
    "create_refresh_token",
    "create_tokens",
    "decode_token",
    "TokenType",
]
