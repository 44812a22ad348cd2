"""Notification model for the mention and activity fan-out."""

import enum
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import relationship

from socialfeed.database import Base, UTCDateTime
from socialfeed.models.user import utcnow


class NotificationType(str, enum.Enum):
    MENTION_POST = "mention_post"
    MENTION_COMMENT = "mention_comment"
    COMMENT_ON_POST = "comment_on_post"
    COMMENT_REPLY = "comment_reply"
    POST_LIKE = "post_like"
    COMMENT_LIKE = "comment_like"


_TYPE_VALUES = ", ".join(f"'{t.value}'" for t in NotificationType)


class Notification(Base):
    """User notification model."""

    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    type = Column(String(32), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    recipient_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    post_id = Column(Uuid, ForeignKey("posts.id", ondelete="CASCADE"))
    comment_id = Column(Uuid, ForeignKey("comments.id", ondelete="CASCADE"))
    # Only like notifications carry a key: "<type>:<recipient>:<sender>:<target>"
    dedupe_key = Column(String(160), unique=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint(f"type IN ({_TYPE_VALUES})", name="ck_notification_type"),
        CheckConstraint("recipient_id <> sender_id", name="ck_notification_not_self"),
        Index("idx_notifications_recipient", recipient_id, created_at.desc()),
        Index("idx_notifications_unread", recipient_id, is_read),
    )

    sender = relationship("User", foreign_keys=[sender_id])
    recipient = relationship("User", foreign_keys=[recipient_id])
    related_post = relationship("Post", foreign_keys=[post_id])
    related_comment = relationship("Comment", foreign_keys=[comment_id])
