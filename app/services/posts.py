"""Post feed and post authoring.

Images go to the ``post-images`` bucket before the row is written.  If the
insert then fails the uploaded image is left behind; nothing is rolled back.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from app.core.config import settings
from app.core.constants import POST_IMAGES_BUCKET, POSTS_TABLE
from app.core.errors import ForbiddenError, NotFoundError
from app.db.storage import build_object_path, delete_blob_by_url, upload_blob
from app.db.supabase import get_supabase
from app.models.post import FeedPage, Post, PostCreate, PostWithAuthor
from app.services.comments import count_comments
from app.services.profiles import fetch_authors, get_username
from app.services.username_cache import UsernameCache

logger = logging.getLogger(__name__)


def _with_details(rows: list[dict[str, Any]]) -> list[PostWithAuthor]:
    authors = fetch_authors(row["user_id"] for row in rows)
    return [
        PostWithAuthor(
            **row,
            author=authors.get(str(row["user_id"])),
            comment_count=count_comments(row["id"]),
        )
        for row in rows
    ]


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def list_feed(page: int = 0, page_size: int | None = None) -> FeedPage:
    """Newest-first page of posts with authors and comment counts.

    ``has_more`` is False once a page comes back short.
    """
    size = page_size or settings.POSTS_PER_PAGE
    start = page * size
    end = start + size - 1

    client = get_supabase()
    result = (
        client.table(POSTS_TABLE)
        .select("*")
        .order("created_at", desc=True)
        .range(start, end)
        .execute()
    )
    rows = result.data or []
    return FeedPage(
        posts=_with_details(rows),
        page=page,
        has_more=len(rows) == size,
    )


def list_user_posts(user_id: UUID) -> list[PostWithAuthor]:
    """All posts by *user_id*, newest first."""
    client = get_supabase()
    result = (
        client.table(POSTS_TABLE)
        .select("*")
        .eq("user_id", str(user_id))
        .order("created_at", desc=True)
        .execute()
    )
    return _with_details(result.data or [])


def get_post(post_id: int) -> Post:
    """Return a post row; ``NotFoundError`` if absent."""
    client = get_supabase()
    result = client.table(POSTS_TABLE).select("*").eq("id", post_id).limit(1).execute()
    if not result.data:
        raise NotFoundError(f"Post not found: {post_id}")
    return Post(**result.data[0])


def get_post_detail(post_id: int) -> PostWithAuthor:
    """Post with author and comment count."""
    post = get_post(post_id)
    return _with_details([post.model_dump(mode="json")])[0]


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def _require_text(title: str | None, content: str | None) -> tuple[str, str]:
    title = (title or "").strip()
    content = (content or "").strip()
    if not title or not content:
        raise ValueError("Title and content are both required")
    return title, content


def _check_image(image: bytes | None) -> None:
    if image is not None and len(image) > settings.POST_IMAGE_MAX_BYTES:
        raise ValueError(
            f"Image must be at most {settings.POST_IMAGE_MAX_BYTES} bytes"
        )


def create_post(
    actor_id: UUID,
    title: str,
    content: str,
    image: bytes | None = None,
    image_filename: str | None = None,
    image_content_type: str | None = None,
    cache: UsernameCache | None = None,
) -> Post:
    """Publish a post as *actor_id*.

    The author must have chosen a username first.
    """
    title, content = _require_text(title, content)
    _check_image(image)

    if cache is not None:
        username = cache.get(actor_id, get_username)
    else:
        username = get_username(actor_id)
    if not username:
        raise ValueError("Set a username before posting")

    image_url: str | None = None
    if image is not None:
        path = build_object_path(str(actor_id), image_filename or "image")
        image_url = upload_blob(POST_IMAGES_BUCKET, path, image, image_content_type)

    record = PostCreate(
        user_id=actor_id,
        title=title,
        content=content,
        image_url=image_url,
    )
    client = get_supabase()
    result = client.table(POSTS_TABLE).insert(record.model_dump(mode="json")).execute()

    post = Post(**result.data[0])
    logger.info(
        "post_created",
        extra={"post_id": post.id, "user_id": str(actor_id), "has_image": bool(image_url)},
    )
    return post


def _owned_post(actor_id: UUID, post_id: int) -> Post:
    post = get_post(post_id)
    if str(post.user_id) != str(actor_id):
        raise ForbiddenError("Only the author can modify this post")
    return post


def update_post(
    actor_id: UUID,
    post_id: int,
    title: str,
    content: str,
    image: bytes | None = None,
    image_filename: str | None = None,
    image_content_type: str | None = None,
    remove_image: bool = False,
) -> Post:
    """Edit title/content and optionally replace or drop the image."""
    title, content = _require_text(title, content)
    _check_image(image)
    post = _owned_post(actor_id, post_id)

    patch: dict[str, Any] = {
        "title": title,
        "content": content,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }

    if image is not None:
        path = build_object_path(str(actor_id), image_filename or "image")
        patch["image_url"] = upload_blob(
            POST_IMAGES_BUCKET, path, image, image_content_type
        )
        delete_blob_by_url(POST_IMAGES_BUCKET, post.image_url)
    elif remove_image and post.image_url:
        delete_blob_by_url(POST_IMAGES_BUCKET, post.image_url)
        patch["image_url"] = None

    client = get_supabase()
    result = client.table(POSTS_TABLE).update(patch).eq("id", post_id).execute()
    logger.info("post_updated", extra={"post_id": post_id})
    if result.data:
        return Post(**result.data[0])
    return get_post(post_id)


def delete_post(actor_id: UUID, post_id: int) -> None:
    """Delete the caller's post and its image.

    Comments and likes go with it through the store's cascade rules.
    """
    post = _owned_post(actor_id, post_id)
    delete_blob_by_url(POST_IMAGES_BUCKET, post.image_url)

    client = get_supabase()
    client.table(POSTS_TABLE).delete().eq("id", post_id).execute()
    logger.info("post_deleted", extra={"post_id": post_id, "user_id": str(actor_id)})
