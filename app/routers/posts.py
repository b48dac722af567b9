"""Post endpoints: feed, authoring, likes, comment threads and translation."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from pydantic import BaseModel

from app.core.auth import get_current_session, require_session
from app.core.config import settings
from app.core.errors import to_http_exception
from app.models.comment import Comment, CommentNode
from app.models.enums import LikeTarget
from app.models.post import FeedPage, Post, PostWithAuthor
from app.models.social import LikeState, Session
from app.routers.deps import read_upload
from app.services import comments as comment_service
from app.services import likes as like_service
from app.services import posts as post_service
from app.services.profiles import get_profile
from app.services.translation import translate_text
from app.services.username_cache import UsernameCache, get_username_cache

logger = logging.getLogger(__name__)

router = APIRouter()


class CommentRequest(BaseModel):
    """Body for a new comment; ``parent_id`` makes it a reply."""
    content: str
    parent_id: int | None = None


class TranslationResponse(BaseModel):
    translated_text: str
    target_language: str


# ---------------------------------------------------------------------------
# Feed and reads
# ---------------------------------------------------------------------------

@router.get("", response_model=FeedPage)
async def list_posts(
    page: int = Query(default=0, ge=0, description="Zero-based page number"),
) -> FeedPage:
    """Newest-first feed page."""
    try:
        return post_service.list_feed(page)
    except Exception as exc:
        raise to_http_exception(exc, "list_posts_failed", page=page) from exc


@router.get("/{post_id}", response_model=PostWithAuthor)
async def read_post(post_id: int) -> PostWithAuthor:
    try:
        return post_service.get_post_detail(post_id)
    except Exception as exc:
        raise to_http_exception(exc, "read_post_failed", post_id=post_id) from exc


# ---------------------------------------------------------------------------
# Authoring
# ---------------------------------------------------------------------------

@router.post("", response_model=Post, status_code=201)
async def create_post(
    title: str = Form(...),
    content: str = Form(...),
    image: UploadFile | None = File(default=None),
    session: Session = Depends(require_session),
    cache: UsernameCache = Depends(get_username_cache),
) -> Post:
    """Publish a post with an optional image (multipart form)."""
    data, filename, content_type = await read_upload(image)
    try:
        return post_service.create_post(
            session.user_id,
            title,
            content,
            image=data,
            image_filename=filename,
            image_content_type=content_type,
            cache=cache,
        )
    except Exception as exc:
        raise to_http_exception(
            exc, "create_post_failed", user_id=str(session.user_id)
        ) from exc


@router.patch("/{post_id}", response_model=Post)
async def update_post(
    post_id: int,
    title: str = Form(...),
    content: str = Form(...),
    image: UploadFile | None = File(default=None),
    remove_image: bool = Form(default=False),
    session: Session = Depends(require_session),
) -> Post:
    """Edit the caller's post; a new image replaces the old one."""
    data, filename, content_type = await read_upload(image)
    try:
        return post_service.update_post(
            session.user_id,
            post_id,
            title,
            content,
            image=data,
            image_filename=filename,
            image_content_type=content_type,
            remove_image=remove_image,
        )
    except Exception as exc:
        raise to_http_exception(exc, "update_post_failed", post_id=post_id) from exc


@router.delete("/{post_id}", status_code=204)
async def delete_post(
    post_id: int,
    session: Session = Depends(require_session),
) -> Response:
    try:
        post_service.delete_post(session.user_id, post_id)
    except Exception as exc:
        raise to_http_exception(exc, "delete_post_failed", post_id=post_id) from exc
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------

@router.get("/{post_id}/like", response_model=LikeState)
async def post_like_state(
    post_id: int,
    session: Session | None = Depends(get_current_session),
) -> LikeState:
    """Like count, and whether the caller liked it (False when anonymous)."""
    actor_id = session.user_id if session else None
    try:
        return like_service.get_like_state(actor_id, post_id, LikeTarget.post)
    except Exception as exc:
        raise to_http_exception(exc, "post_like_state_failed", post_id=post_id) from exc


@router.post("/{post_id}/like", response_model=LikeState)
async def toggle_post_like(
    post_id: int,
    session: Session = Depends(require_session),
) -> LikeState:
    try:
        return like_service.toggle_like(session.user_id, post_id, LikeTarget.post)
    except Exception as exc:
        raise to_http_exception(exc, "toggle_post_like_failed", post_id=post_id) from exc


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

@router.get("/{post_id}/comments", response_model=list[CommentNode])
async def list_comments(post_id: int) -> list[CommentNode]:
    """Top-level comments oldest first, each with its replies."""
    try:
        return comment_service.get_comment_tree(post_id)
    except Exception as exc:
        raise to_http_exception(exc, "list_comments_failed", post_id=post_id) from exc


@router.post("/{post_id}/comments", response_model=Comment, status_code=201)
async def create_comment(
    post_id: int,
    body: CommentRequest,
    session: Session = Depends(require_session),
) -> Comment:
    try:
        return comment_service.create_comment(
            session.user_id, post_id, body.content, parent_id=body.parent_id
        )
    except Exception as exc:
        raise to_http_exception(exc, "create_comment_failed", post_id=post_id) from exc


# ---------------------------------------------------------------------------
# Translation
# ---------------------------------------------------------------------------

@router.post("/{post_id}/translate", response_model=TranslationResponse)
async def translate_post(
    post_id: int,
    session: Session = Depends(require_session),
) -> TranslationResponse:
    """Translate the post body into the caller's preferred language."""
    try:
        post = post_service.get_post(post_id)
        language = get_profile(session.user_id).language or settings.DEFAULT_LANGUAGE
        translated = await translate_text(post.content, language)
    except Exception as exc:
        raise to_http_exception(exc, "translate_post_failed", post_id=post_id) from exc

    return TranslationResponse(translated_text=translated, target_language=language)
