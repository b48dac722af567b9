"""Response models for search."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.enums import ResultKind, SearchScope
from app.models.profile import AuthorSummary


class PostResult(BaseModel):
    """A post matching the query."""
    kind: Literal[ResultKind.post] = ResultKind.post
    id: int
    user_id: UUID
    title: str
    content: str
    image_url: str | None = None
    like_count: int = 0
    created_at: datetime | None = None
    author: AuthorSummary | None = None


class UserResult(BaseModel):
    """A profile matching the query."""
    kind: Literal[ResultKind.user] = ResultKind.user
    id: UUID
    username: str | None = None
    full_name: str | None = None
    avatar_url: str | None = None
    bio: str | None = None


SearchResult = PostResult | UserResult


class SearchResponse(BaseModel):
    """Posts first, then users, in store order."""
    query: str
    scope: SearchScope = SearchScope.all
    results: list[SearchResult] = Field(default_factory=list)
