"""User-related Pydantic schemas."""

from pydantic import field_validator

from socialfeed.schemas.base import APIModel


class UserSummary(APIModel):
    """Author/sender block embedded in posts, comments and notifications."""

    id: str
    username: str
    profile_pic: str | None


class UserMeResponse(APIModel):
    """Response for GET /users/me endpoint."""

    user_id: str
    username: str
    email: str | None
    display_name: str | None
    description: str
    profile_pic: str | None
    open_profile: bool


class UserProfileResponse(APIModel):
    """Public user profile response."""

    user_id: str
    username: str
    display_name: str | None
    description: str
    profile_pic: str | None
    open_profile: bool
    created_at: str
    posts: int  # posts on this user's wall
    authored_posts: int
    likes: int  # likes received on authored posts
    # Note: email is NOT included - it's private


class UpdateProfileRequest(APIModel):
    """Request to update user profile."""

    display_name: str | None = None
    description: str | None = None
    open_profile: bool | None = None

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str | None) -> str | None:
        if v is not None and len(v) > 150:
            raise ValueError("Description may not have more than 150 characters")
        return v


class DiscoverUserResponse(APIModel):
    """A user suggested on the explore page."""

    user_id: str
    username: str
    display_name: str | None
    description: str
    profile_pic: str | None
