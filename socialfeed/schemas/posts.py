"""Post and comment Pydantic schemas."""

from typing import Any
from uuid import UUID

from pydantic import field_validator

from socialfeed.schemas.base import APIModel, validate_message
from socialfeed.schemas.users import UserSummary

POST_MAX_LENGTH = 2000
COMMENT_MAX_LENGTH = 1000


class CreatePostRequest(APIModel):
    """Request to create a post on a user's wall."""

    message: str
    embed: dict[str, Any] | None = None

    @field_validator("message")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return validate_message(v, POST_MAX_LENGTH)


class UpdatePostRequest(APIModel):
    """Request to update a post."""

    message: str
    embed: dict[str, Any] | None = None

    @field_validator("message")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return validate_message(v, POST_MAX_LENGTH)


class CreateCommentRequest(APIModel):
    """
    Request to add a comment.

    Omitting ``parentCommentId`` (or sending null) creates a top-level comment.
    """

    message: str
    post_id: UUID
    parent_comment_id: UUID | None = None

    @field_validator("message")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return validate_message(v, COMMENT_MAX_LENGTH, label="Comment")


class UpdateCommentRequest(APIModel):
    message: str

    @field_validator("message")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return validate_message(v, COMMENT_MAX_LENGTH, label="Comment")


class ParentCommentPreview(APIModel):
    id: str
    message: str
    author: UserSummary


class CommentResponse(APIModel):
    """Response for a comment."""

    id: str
    post_id: str
    parent_comment_id: str | None
    message: str
    likes: int
    author: UserSummary
    created_at: str
    updated_at: str


class CreatedCommentResponse(CommentResponse):
    """Newly created comment, with a preview of the comment it replies to."""

    parent_comment: ParentCommentPreview | None = None


class ThreadedCommentResponse(CommentResponse):
    """Top-level comment with every descendant reply, oldest first."""

    replies: list[CommentResponse]


class PostResponse(APIModel):
    """Post without comments."""

    id: str
    message: str
    author: UserSummary
    wall_owner: UserSummary
    likes: int
    liked: bool
    embed: dict[str, Any] | None
    created_at: str
    updated_at: str


class PostWithCommentsResponse(PostResponse):
    """Post with its comments grouped into threads."""

    comments: list[ThreadedCommentResponse]
    comment_count: int


class ListPostsResponse(APIModel):
    """Response for listing posts."""

    items: list[PostResponse]
    next_cursor: str | None
    has_more: bool
