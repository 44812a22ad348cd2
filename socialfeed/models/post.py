"""Wall post and post-like models."""

import uuid

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    Table,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import relationship

from socialfeed.database import Base, UTCDateTime
from socialfeed.models.user import utcnow

post_likes = Table(
    "post_likes",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("post_id", Uuid, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", UTCDateTime, nullable=False, default=utcnow),
    Index("idx_post_likes_post", "post_id"),
)


class Post(Base):
    """
    A post on a user's wall.

    The author and the wall owner are the same user for posts on one's own
    profile, and differ when someone writes on another user's wall.
    """

    __tablename__ = "posts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    author_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    wall_owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    message = Column(Text, nullable=False)
    likes = Column(Integer, nullable=False, default=0, server_default=text("0"))
    embed = Column(JSON)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("length(message) <= 2000", name="ck_post_message_length"),
        Index("idx_posts_wall_owner", wall_owner_id, created_at.desc()),
        Index("idx_posts_author", author_id),
        Index("idx_posts_created", created_at.desc()),
    )

    author = relationship("User", foreign_keys=[author_id])
    wall_owner = relationship("User", foreign_keys=[wall_owner_id])
