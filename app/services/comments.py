"""Comment threads: one level of replies under top-level comments.

``build_comment_tree`` turns the chronological flat list for a post into
top-level nodes carrying their replies.  Replies are grouped by
``parent_id`` and attached only while walking the top-level nodes, so a
reply whose parent is not in the list (deleted, or filtered out) never
appears in the tree.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from app.core.constants import COMMENTS_TABLE, POSTS_TABLE
from app.core.errors import ForbiddenError, NotFoundError
from app.db.supabase import get_supabase
from app.models.comment import Comment, CommentCreate, CommentNode
from app.services.profiles import fetch_authors

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tree assembly
# ---------------------------------------------------------------------------

def build_comment_tree(comments: list[Comment]) -> list[CommentNode]:
    """Partition *comments* into top-level nodes with attached replies.

    Input order is preserved at both levels.  Orphan replies are dropped.
    """
    roots: list[CommentNode] = []
    replies_by_parent: dict[int, list[Comment]] = {}

    for comment in comments:
        if comment.parent_id is None:
            roots.append(CommentNode(**comment.model_dump(), replies=[]))
        else:
            replies_by_parent.setdefault(comment.parent_id, []).append(comment)

    for node in roots:
        if node.id in replies_by_parent:
            node.replies = replies_by_parent[node.id]

    return roots


def get_comment_tree(post_id: int) -> list[CommentNode]:
    """Fetch a post's comments and return them as an attributed tree.

    Each distinct author is looked up once for the whole thread.
    """
    client = get_supabase()
    result = (
        client.table(COMMENTS_TABLE)
        .select("*")
        .eq("post_id", post_id)
        .order("created_at", desc=False)
        .execute()
    )
    rows: list[dict[str, Any]] = result.data or []

    authors = fetch_authors(row["user_id"] for row in rows)
    comments = [
        Comment(**row, author=authors.get(str(row["user_id"])))
        for row in rows
    ]
    return build_comment_tree(comments)


def count_comments(post_id: int) -> int:
    """Exact number of comments (replies included) on a post."""
    client = get_supabase()
    result = (
        client.table(COMMENTS_TABLE)
        .select("id", count="exact")
        .eq("post_id", post_id)
        .execute()
    )
    return int(result.count or 0)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

def get_comment(comment_id: int) -> Comment:
    """Return one comment; ``NotFoundError`` if it does not exist."""
    client = get_supabase()
    result = (
        client.table(COMMENTS_TABLE)
        .select("*")
        .eq("id", comment_id)
        .limit(1)
        .execute()
    )
    if not result.data:
        raise NotFoundError(f"Comment not found: {comment_id}")
    return Comment(**result.data[0])


def _ensure_post_exists(post_id: int) -> None:
    client = get_supabase()
    result = client.table(POSTS_TABLE).select("id").eq("id", post_id).limit(1).execute()
    if not result.data:
        raise NotFoundError(f"Post not found: {post_id}")


def create_comment(
    actor_id: UUID,
    post_id: int,
    content: str,
    parent_id: int | None = None,
) -> Comment:
    """Add a top-level comment, or a reply when *parent_id* is given.

    A reply must target a top-level comment of the same post; replying
    to a reply raises ``ValueError``.
    """
    text = (content or "").strip()
    if not text:
        raise ValueError("Comment text is required")

    _ensure_post_exists(post_id)

    if parent_id is not None:
        parent = get_comment(parent_id)
        if parent.post_id != post_id:
            raise ValueError("Parent comment belongs to another post")
        if parent.parent_id is not None:
            raise ValueError("Replies can only target top-level comments")

    record = CommentCreate(
        post_id=post_id,
        user_id=actor_id,
        content=text,
        parent_id=parent_id,
    )
    client = get_supabase()
    result = client.table(COMMENTS_TABLE).insert(record.model_dump(mode="json")).execute()

    logger.info(
        "comment_created",
        extra={
            "post_id": post_id,
            "user_id": str(actor_id),
            "parent_id": parent_id,
        },
    )
    return Comment(**result.data[0])


def _owned_comment(actor_id: UUID, comment_id: int) -> Comment:
    comment = get_comment(comment_id)
    if str(comment.user_id) != str(actor_id):
        raise ForbiddenError("Only the author can modify this comment")
    return comment


def update_comment(actor_id: UUID, comment_id: int, content: str) -> Comment:
    """Replace the text of the caller's own comment."""
    text = (content or "").strip()
    if not text:
        raise ValueError("Comment text is required")

    _owned_comment(actor_id, comment_id)
    client = get_supabase()
    result = (
        client.table(COMMENTS_TABLE)
        .update({"content": text})
        .eq("id", comment_id)
        .execute()
    )
    logger.info("comment_updated", extra={"comment_id": comment_id})
    if result.data:
        return Comment(**result.data[0])
    return get_comment(comment_id)


def delete_comment(actor_id: UUID, comment_id: int) -> None:
    """Delete the caller's own comment.

    Replies of a top-level comment are removed by the store's
    ``ON DELETE CASCADE`` on ``parent_id``.
    """
    _owned_comment(actor_id, comment_id)
    client = get_supabase()
    client.table(COMMENTS_TABLE).delete().eq("id", comment_id).execute()
    logger.info("comment_deleted", extra={"comment_id": comment_id})
