"""Comment endpoints addressed by comment id."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from app.core.auth import get_current_session, require_session
from app.core.errors import to_http_exception
from app.models.comment import Comment
from app.models.enums import LikeTarget
from app.models.social import LikeState, Session
from app.services import comments as comment_service
from app.services import likes as like_service

logger = logging.getLogger(__name__)

router = APIRouter()


class CommentEdit(BaseModel):
    content: str


@router.patch("/{comment_id}", response_model=Comment)
async def edit_comment(
    comment_id: int,
    body: CommentEdit,
    session: Session = Depends(require_session),
) -> Comment:
    try:
        return comment_service.update_comment(session.user_id, comment_id, body.content)
    except Exception as exc:
        raise to_http_exception(exc, "edit_comment_failed", comment_id=comment_id) from exc


@router.delete("/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: int,
    session: Session = Depends(require_session),
) -> Response:
    """Delete the caller's comment; replies go with a top-level comment."""
    try:
        comment_service.delete_comment(session.user_id, comment_id)
    except Exception as exc:
        raise to_http_exception(exc, "delete_comment_failed", comment_id=comment_id) from exc
    return Response(status_code=204)


@router.get("/{comment_id}/like", response_model=LikeState)
async def comment_like_state(
    comment_id: int,
    session: Session | None = Depends(get_current_session),
) -> LikeState:
    actor_id = session.user_id if session else None
    try:
        return like_service.get_like_state(actor_id, comment_id, LikeTarget.comment)
    except Exception as exc:
        raise to_http_exception(
            exc, "comment_like_state_failed", comment_id=comment_id
        ) from exc


@router.post("/{comment_id}/like", response_model=LikeState)
async def toggle_comment_like(
    comment_id: int,
    session: Session = Depends(require_session),
) -> LikeState:
    try:
        return like_service.toggle_like(session.user_id, comment_id, LikeTarget.comment)
    except Exception as exc:
        raise to_http_exception(
            exc, "toggle_comment_like_failed", comment_id=comment_id
        ) from exc
