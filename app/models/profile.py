"""Pydantic models for the ``profiles`` table.

``followers_count`` and ``following_count`` are denormalized caches kept in
step by the follow toggle, not computed at read time.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AuthorSummary(BaseModel):
    """Subset of a profile attached to posts, comments and search hits."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str | None = None
    full_name: str | None = None
    avatar_url: str | None = None


class Profile(BaseModel):
    """Full profile record returned from the database."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str | None = None
    full_name: str | None = None
    bio: str | None = None
    website: str | None = None
    avatar_url: str | None = None
    language: str | None = None
    followers_count: int = 0
    following_count: int = 0
    updated_at: datetime | None = None


class ProfileUpdate(BaseModel):
    """Editable profile fields; unset fields are left untouched."""
    username: str | None = Field(default=None, max_length=50)
    full_name: str | None = None
    bio: str | None = None
    website: str | None = None
    language: str | None = None
