"""User model."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    String,
    Text,
    Uuid,
    text,
)

from socialfeed.database import Base, UTCDateTime


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """User account model."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(30), unique=True, nullable=False)  # always stored lower-cased
    email = Column(String, unique=True)
    password_hash = Column(Text)
    display_name = Column(Text)
    description = Column(String(150), nullable=False, default="", server_default=text("''"))
    profile_pic = Column(Text)
    open_profile = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
