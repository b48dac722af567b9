"""Models for likes, follows and the request session."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class Like(BaseModel):
    """A single user's like on exactly one post or comment."""
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    post_id: int | None = None
    comment_id: int | None = None


class LikeState(BaseModel):
    """Like status of a target as seen by one user."""
    liked: bool
    like_count: int = 0


class Follow(BaseModel):
    """Directed follower -> following edge."""
    model_config = ConfigDict(from_attributes=True)

    follower_id: UUID
    following_id: UUID


class FollowState(BaseModel):
    """Result of a follow toggle."""
    following: bool
    followers_count: int = 0
    following_count: int = 0


class Session(BaseModel):
    """Authenticated caller resolved from a Supabase access token."""
    user_id: UUID
    email: str | None = None
