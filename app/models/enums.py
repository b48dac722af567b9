"""Enum types shared by models, services and routers."""

from enum import Enum


class LikeTarget(str, Enum):
    """Kind of entity a like points at."""
    post = "post"
    comment = "comment"


class SearchScope(str, Enum):
    """Which entity kinds a search covers."""
    all = "all"
    posts = "posts"
    users = "users"


class ResultKind(str, Enum):
    """Tag on each search result."""
    post = "post"
    user = "user"
