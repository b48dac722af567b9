"""Follow graph operations and follower/following counters."""

from __future__ import annotations

import logging
from uuid import UUID

from app.core.constants import FOLLOWS_TABLE, PROFILES_TABLE
from app.db.supabase import get_supabase
from app.models.profile import Profile
from app.models.social import Follow, FollowState
from app.services.counters import adjust_counter

logger = logging.getLogger(__name__)


def is_following(follower_id: UUID, following_id: UUID) -> bool:
    """Return True if the follower -> following edge exists."""
    client = get_supabase()
    result = (
        client.table(FOLLOWS_TABLE)
        .select("follower_id")
        .eq("follower_id", str(follower_id))
        .eq("following_id", str(following_id))
        .limit(1)
        .execute()
    )
    return bool(result.data)


def toggle_follow(actor_id: UUID, target_id: UUID) -> FollowState:
    """Follow *target_id* as *actor_id*, or unfollow if already following.

    Self-follow is rejected with ``ValueError``.  The two counters are
    updated as separate read/clamp/write sequences, target first.
    """
    if str(actor_id) == str(target_id):
        raise ValueError("You cannot follow yourself")

    client = get_supabase()

    if is_following(actor_id, target_id):
        (
            client.table(FOLLOWS_TABLE)
            .delete()
            .eq("follower_id", str(actor_id))
            .eq("following_id", str(target_id))
            .execute()
        )
        delta = -1
    else:
        record = Follow(follower_id=actor_id, following_id=target_id)
        client.table(FOLLOWS_TABLE).insert(record.model_dump(mode="json")).execute()
        delta = 1

    followers_count = adjust_counter(PROFILES_TABLE, target_id, "followers_count", delta)
    following_count = adjust_counter(PROFILES_TABLE, actor_id, "following_count", delta)

    logger.info(
        "follow_toggled",
        extra={
            "actor_id": str(actor_id),
            "target_id": str(target_id),
            "following": delta > 0,
        },
    )
    return FollowState(
        following=delta > 0,
        followers_count=followers_count,
        following_count=following_count,
    )


def _profiles_for(ids: list[str]) -> list[Profile]:
    if not ids:
        return []
    client = get_supabase()
    result = client.table(PROFILES_TABLE).select("*").in_("id", ids).execute()
    return [Profile(**row) for row in result.data or []]


def list_followers(user_id: UUID) -> list[Profile]:
    """Profiles following *user_id*."""
    client = get_supabase()
    result = (
        client.table(FOLLOWS_TABLE)
        .select("follower_id")
        .eq("following_id", str(user_id))
        .execute()
    )
    return _profiles_for([row["follower_id"] for row in result.data or []])


def list_following(user_id: UUID) -> list[Profile]:
    """Profiles *user_id* follows."""
    client = get_supabase()
    result = (
        client.table(FOLLOWS_TABLE)
        .select("following_id")
        .eq("follower_id", str(user_id))
        .execute()
    )
    return _profiles_for([row["following_id"] for row in result.data or []])
