"""Pydantic models for the ``comments`` table and the assembled tree.

A comment with ``parent_id`` None is top-level; otherwise it is a reply to
a top-level comment.  Trees are one level deep.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.models.profile import AuthorSummary


class CommentCreate(BaseModel):
    """Payload for inserting a new comment or reply."""
    post_id: int
    user_id: UUID
    content: str
    parent_id: int | None = None


class Comment(BaseModel):
    """Full comment record returned from the database."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    post_id: int
    user_id: UUID
    content: str
    parent_id: int | None = None
    like_count: int = 0
    created_at: datetime
    author: AuthorSummary | None = None


class CommentNode(Comment):
    """A top-level comment with its replies in chronological order."""
    replies: list[Comment] = []
