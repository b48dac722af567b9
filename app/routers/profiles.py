"""Profile endpoints: own profile, public profiles and the follow graph."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel

from app.core.auth import get_current_session, require_session
from app.core.errors import to_http_exception
from app.models.post import PostWithAuthor
from app.models.profile import Profile, ProfileUpdate
from app.models.social import FollowState, Session
from app.routers.deps import read_upload
from app.services import follows as follow_service
from app.services import profiles as profile_service
from app.services.posts import list_user_posts
from app.services.username_cache import UsernameCache, get_username_cache

logger = logging.getLogger(__name__)

router = APIRouter()


class FollowStatus(BaseModel):
    following: bool


# ---------------------------------------------------------------------------
# Own profile
# ---------------------------------------------------------------------------

@router.get("/me", response_model=Profile)
async def read_own_profile(session: Session = Depends(require_session)) -> Profile:
    try:
        return profile_service.get_profile(session.user_id)
    except Exception as exc:
        raise to_http_exception(
            exc, "read_own_profile_failed", user_id=str(session.user_id)
        ) from exc


@router.get("/me/username")
async def read_own_username(
    session: Session = Depends(require_session),
    cache: UsernameCache = Depends(get_username_cache),
) -> dict[str, Any]:
    """Username for navigation links, served from the username cache."""
    try:
        username = cache.get(session.user_id, profile_service.get_username)
    except Exception as exc:
        raise to_http_exception(
            exc, "read_own_username_failed", user_id=str(session.user_id)
        ) from exc
    return {"user_id": str(session.user_id), "username": username}


@router.patch("/me", response_model=Profile)
async def update_own_profile(
    username: str | None = Form(default=None),
    full_name: str | None = Form(default=None),
    bio: str | None = Form(default=None),
    website: str | None = Form(default=None),
    language: str | None = Form(default=None),
    avatar: UploadFile | None = File(default=None),
    use_default_avatar: bool = Form(default=False),
    session: Session = Depends(require_session),
    cache: UsernameCache = Depends(get_username_cache),
) -> Profile:
    """Save profile fields (multipart form); omitted fields stay as they are."""
    fields = {
        "username": username,
        "full_name": full_name,
        "bio": bio,
        "website": website,
        "language": language,
    }
    data, filename, content_type = await read_upload(avatar)
    try:
        changes = ProfileUpdate(**{k: v for k, v in fields.items() if v is not None})
        return profile_service.update_profile(
            session.user_id,
            changes,
            avatar=data,
            avatar_filename=filename,
            avatar_content_type=content_type,
            use_default_avatar=use_default_avatar,
            cache=cache,
        )
    except Exception as exc:
        raise to_http_exception(
            exc, "update_profile_failed", user_id=str(session.user_id)
        ) from exc


# ---------------------------------------------------------------------------
# Public profiles
# ---------------------------------------------------------------------------

@router.get("/{username}", response_model=Profile)
async def read_profile(username: str) -> Profile:
    try:
        return profile_service.get_profile_by_username(username)
    except Exception as exc:
        raise to_http_exception(exc, "read_profile_failed", username=username) from exc


@router.get("/{username}/posts", response_model=list[PostWithAuthor])
async def read_profile_posts(username: str) -> list[PostWithAuthor]:
    try:
        profile = profile_service.get_profile_by_username(username)
        return list_user_posts(profile.id)
    except Exception as exc:
        raise to_http_exception(exc, "read_profile_posts_failed", username=username) from exc


@router.get("/{username}/followers", response_model=list[Profile])
async def read_followers(username: str) -> list[Profile]:
    try:
        profile = profile_service.get_profile_by_username(username)
        return follow_service.list_followers(profile.id)
    except Exception as exc:
        raise to_http_exception(exc, "read_followers_failed", username=username) from exc


@router.get("/{username}/following", response_model=list[Profile])
async def read_following(username: str) -> list[Profile]:
    try:
        profile = profile_service.get_profile_by_username(username)
        return follow_service.list_following(profile.id)
    except Exception as exc:
        raise to_http_exception(exc, "read_following_failed", username=username) from exc


# ---------------------------------------------------------------------------
# Follow
# ---------------------------------------------------------------------------

@router.get("/{username}/follow", response_model=FollowStatus)
async def follow_status(
    username: str,
    session: Session | None = Depends(get_current_session),
) -> FollowStatus:
    """Whether the caller follows *username* (False when anonymous)."""
    if session is None:
        return FollowStatus(following=False)
    try:
        profile = profile_service.get_profile_by_username(username)
        return FollowStatus(
            following=follow_service.is_following(session.user_id, profile.id)
        )
    except Exception as exc:
        raise to_http_exception(exc, "follow_status_failed", username=username) from exc


@router.post("/{username}/follow", response_model=FollowState)
async def toggle_follow(
    username: str,
    session: Session = Depends(require_session),
) -> FollowState:
    """Follow or unfollow *username*; following yourself is a 400."""
    try:
        profile = profile_service.get_profile_by_username(username)
        return follow_service.toggle_follow(session.user_id, profile.id)
    except Exception as exc:
        raise to_http_exception(
            exc,
            "toggle_follow_failed",
            username=username,
            actor_id=str(session.user_id),
        ) from exc
