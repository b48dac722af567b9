"""Pydantic models for the ``posts`` table."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.models.profile import AuthorSummary


class PostCreate(BaseModel):
    """Payload for inserting a new post."""
    user_id: UUID
    title: str
    content: str
    image_url: str | None = None


class Post(BaseModel):
    """Full post record returned from the database."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: UUID
    title: str
    content: str
    image_url: str | None = None
    like_count: int = 0
    created_at: datetime
    updated_at: datetime | None = None


class PostWithAuthor(Post):
    """Post enriched for display with its author and comment count."""
    author: AuthorSummary | None = None
    comment_count: int = 0


class FeedPage(BaseModel):
    """One page of the home feed."""
    posts: list[PostWithAuthor] = []
    page: int = 0
    has_more: bool = False
