"""Comment and comment-like models."""

import uuid

from sqlalchemy import (
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

comment_likes = Table(
    "comment_likes",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("comment_id", Uuid, ForeignKey("comments.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", UTCDateTime, nullable=False, default=utcnow),
    Index("idx_comment_likes_comment", "comment_id"),
)


class Comment(Base):
    """
    Comment on a post.

    ``parent_comment_id`` is null for top-level comments; replies point at
    another comment on the same post. Children are never loaded through the
    ORM, the thread builder works on the flat list of a post's comments.
    """

    __tablename__ = "comments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    post_id = Column(Uuid, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    parent_comment_id = Column(Uuid, ForeignKey("comments.id", ondelete="CASCADE"))
    message = Column(Text, nullable=False)
    likes = Column(Integer, nullable=False, default=0, server_default=text("0"))
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("length(message) <= 1000", name="ck_comment_message_length"),
        Index("idx_comments_post", post_id, created_at),
        Index("idx_comments_parent", parent_comment_id),
    )

    author = relationship("User", foreign_keys=[author_id])
    post = relationship("Post", foreign_keys=[post_id])
