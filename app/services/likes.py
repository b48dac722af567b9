"""Like toggling for posts and comments.

A like row carries exactly one of ``post_id``/``comment_id``.  Toggling
inserts or deletes that row and then moves the target's ``like_count`` by
one through ``adjust_counter``, which re-reads the stored value first
rather than trusting a count held by the caller.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from app.core.constants import COMMENTS_TABLE, LIKES_TABLE, POSTS_TABLE
from app.db.supabase import get_supabase
from app.models.enums import LikeTarget
from app.models.social import Like, LikeState
from app.services.counters import adjust_counter

logger = logging.getLogger(__name__)

_TARGET_TABLE: dict[LikeTarget, str] = {
    LikeTarget.post: POSTS_TABLE,
    LikeTarget.comment: COMMENTS_TABLE,
}


def _columns(target: LikeTarget) -> tuple[str, str]:
    """Return (column set for this target, column that must be NULL)."""
    if target is LikeTarget.post:
        return "post_id", "comment_id"
    return "comment_id", "post_id"


def _like_query(query: Any, target_id: int, target: LikeTarget) -> Any:
    column, other = _columns(target)
    return query.eq(column, target_id).is_(other, "null")


def has_liked(actor_id: UUID, target_id: int, target: LikeTarget) -> bool:
    """Return True if *actor_id* currently likes the target."""
    client = get_supabase()
    query = client.table(LIKES_TABLE).select("user_id").eq("user_id", str(actor_id))
    result = _like_query(query, target_id, target).limit(1).execute()
    return bool(result.data)


def count_likes(target_id: int, target: LikeTarget) -> int:
    """Exact number of like rows for the target."""
    client = get_supabase()
    query = client.table(LIKES_TABLE).select("user_id", count="exact")
    result = _like_query(query, target_id, target).execute()
    return int(result.count or 0)


def get_like_state(
    actor_id: UUID | None,
    target_id: int,
    target: LikeTarget,
) -> LikeState:
    """Like flag for *actor_id* (False when anonymous) and row count."""
    liked = has_liked(actor_id, target_id, target) if actor_id else False
    return LikeState(liked=liked, like_count=count_likes(target_id, target))


def toggle_like(actor_id: UUID, target_id: int, target: LikeTarget) -> LikeState:
    """Like the target if not yet liked by *actor_id*, otherwise unlike it.

    Store errors propagate; a failure between the row change and the
    counter update is not rolled back.
    """
    client = get_supabase()
    table = _TARGET_TABLE[target]
    column, _ = _columns(target)

    if has_liked(actor_id, target_id, target):
        query = client.table(LIKES_TABLE).delete().eq("user_id", str(actor_id))
        _like_query(query, target_id, target).execute()
        like_count = adjust_counter(table, target_id, "like_count", -1)
        liked = False
    else:
        record = Like(user_id=actor_id, **{column: target_id})
        client.table(LIKES_TABLE).insert(record.model_dump(mode="json")).execute()
        like_count = adjust_counter(table, target_id, "like_count", 1)
        liked = True

    logger.info(
        "like_toggled",
        extra={
            "actor_id": str(actor_id),
            "target": target.value,
            "target_id": target_id,
            "liked": liked,
            "like_count": like_count,
        },
    )
    return LikeState(liked=liked, like_count=like_count)
