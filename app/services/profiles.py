"""Profile reads, profile editing and author attribution.

Avatars live in the ``avatars`` bucket; a replaced avatar is removed after
the new one uploads successfully.  Saving a profile invalidates the
current user's entry in the username cache.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable
from uuid import UUID

from app.core.config import settings
from app.core.constants import AUTHOR_COLUMNS, AVATARS_BUCKET, PROFILES_TABLE
from app.core.errors import NotFoundError
from app.db.storage import build_object_path, delete_blob_by_url, upload_blob
from app.db.supabase import get_supabase
from app.models.profile import AuthorSummary, Profile, ProfileUpdate
from app.services.username_cache import UsernameCache

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def get_profile(user_id: UUID) -> Profile:
    """Return the profile for *user_id*; ``NotFoundError`` if absent."""
    client = get_supabase()
    result = (
        client.table(PROFILES_TABLE)
        .select("*")
        .eq("id", str(user_id))
        .limit(1)
        .execute()
    )
    if not result.data:
        raise NotFoundError(f"Profile not found: {user_id}")
    return Profile(**result.data[0])


def get_profile_by_username(username: str) -> Profile:
    """Return the profile owning *username*; ``NotFoundError`` if absent."""
    client = get_supabase()
    result = (
        client.table(PROFILES_TABLE)
        .select("*")
        .eq("username", username)
        .limit(1)
        .execute()
    )
    if not result.data:
        raise NotFoundError(f"Profile not found: {username}")
    return Profile(**result.data[0])


def get_username(user_id: UUID | str) -> str | None:
    """Load the username for *user_id* (None when unset or no profile)."""
    client = get_supabase()
    result = (
        client.table(PROFILES_TABLE)
        .select("username")
        .eq("id", str(user_id))
        .limit(1)
        .execute()
    )
    if not result.data:
        return None
    return result.data[0].get("username")


def get_author(user_id: UUID | str) -> AuthorSummary | None:
    """Single author lookup; None when the profile is missing."""
    client = get_supabase()
    result = (
        client.table(PROFILES_TABLE)
        .select(AUTHOR_COLUMNS)
        .eq("id", str(user_id))
        .limit(1)
        .execute()
    )
    if not result.data:
        return None
    return AuthorSummary(**result.data[0])


def fetch_authors(user_ids: Iterable[UUID | str]) -> dict[str, AuthorSummary]:
    """Fetch each distinct author once, keyed by ``str(id)``."""
    unique_ids = list(dict.fromkeys(str(uid) for uid in user_ids))
    if not unique_ids:
        return {}
    client = get_supabase()
    result = (
        client.table(PROFILES_TABLE)
        .select(AUTHOR_COLUMNS)
        .in_("id", unique_ids)
        .execute()
    )
    return {
        str(row["id"]): AuthorSummary(**row) for row in result.data or []
    }


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def _ensure_username_free(username: str, actor_id: UUID) -> None:
    client = get_supabase()
    result = (
        client.table(PROFILES_TABLE)
        .select("id")
        .eq("username", username)
        .neq("id", str(actor_id))
        .execute()
    )
    if result.data:
        raise ValueError("Username is already taken")


def update_profile(
    actor_id: UUID,
    changes: ProfileUpdate,
    avatar: bytes | None = None,
    avatar_filename: str | None = None,
    avatar_content_type: str | None = None,
    use_default_avatar: bool = False,
    cache: UsernameCache | None = None,
) -> Profile:
    """Save the caller's profile and return the stored record.

    Validation happens before any upload: a duplicate username or an
    avatar over ``settings.AVATAR_MAX_BYTES`` raises ``ValueError``.
    """
    payload: dict[str, Any] = changes.model_dump(exclude_unset=True)
    if "username" in payload:
        username = (payload["username"] or "").strip()
        if not username:
            raise ValueError("Username cannot be empty")
        _ensure_username_free(username, actor_id)
        payload["username"] = username

    if avatar is not None and len(avatar) > settings.AVATAR_MAX_BYTES:
        raise ValueError(
            f"Avatar must be at most {settings.AVATAR_MAX_BYTES} bytes"
        )

    current_avatar: str | None = None
    if use_default_avatar or avatar is not None:
        try:
            current_avatar = get_profile(actor_id).avatar_url
        except NotFoundError:
            current_avatar = None

    if use_default_avatar:
        delete_blob_by_url(AVATARS_BUCKET, current_avatar)
        payload["avatar_url"] = None
    elif avatar is not None:
        path = build_object_path(str(actor_id), avatar_filename or "avatar")
        payload["avatar_url"] = upload_blob(
            AVATARS_BUCKET, path, avatar, avatar_content_type
        )
        delete_blob_by_url(AVATARS_BUCKET, current_avatar)

    payload["id"] = str(actor_id)
    payload["updated_at"] = datetime.now(timezone.utc).isoformat()

    client = get_supabase()
    result = client.table(PROFILES_TABLE).upsert(payload).execute()

    if cache is not None:
        cache.invalidate(actor_id)

    logger.info(
        "profile_updated",
        extra={"user_id": str(actor_id), "fields": sorted(payload)},
    )

    if result.data:
        return Profile(**result.data[0])
    return get_profile(actor_id)
