"""Object storage helpers on top of Supabase Storage.

Images for posts and avatars are stored under ``{user_id}-{epoch_ms}.{ext}``
and referenced from table rows by their public URL.
"""

from __future__ import annotations

import logging
import re
import time

from app.db.supabase import get_supabase

logger = logging.getLogger(__name__)


def build_object_path(user_id: str, filename: str, now_ms: int | None = None) -> str:
    """Return the storage path for a file uploaded by *user_id*.

    The extension is taken from *filename*; files without one get ``bin``.
    """
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{user_id}-{stamp}.{ext}"


def upload_blob(
    bucket: str,
    path: str,
    data: bytes,
    content_type: str | None = None,
) -> str:
    """Upload *data* to ``bucket/path`` and return its public URL."""
    client = get_supabase()
    options = {"content-type": content_type} if content_type else None
    client.storage.from_(bucket).upload(path, data, file_options=options)
    public_url = client.storage.from_(bucket).get_public_url(path)
    logger.info(
        "blob_uploaded",
        extra={"bucket": bucket, "path": path, "size": len(data)},
    )
    return public_url


def delete_blob(bucket: str, path: str) -> None:
    """Remove ``bucket/path``."""
    client = get_supabase()
    client.storage.from_(bucket).remove([path])
    logger.info("blob_deleted", extra={"bucket": bucket, "path": path})


def path_from_public_url(bucket: str, url: str | None) -> str | None:
    """Extract the object path from a public URL of *bucket*.

    ``https://x.supabase.co/storage/v1/object/public/avatars/abc.jpg``
    gives ``abc.jpg``.  Returns None for URLs outside the bucket.
    """
    if not url:
        return None
    match = re.search(rf"/{re.escape(bucket)}/([^?]+)", url)
    return match.group(1) if match else None


def delete_blob_by_url(bucket: str, url: str | None) -> bool:
    """Best-effort removal of the object behind a public URL.

    Failures are logged and swallowed: a leftover blob does not affect
    any row.  Returns True when a delete was issued successfully.
    """
    path = path_from_public_url(bucket, url)
    if not path:
        return False
    try:
        delete_blob(bucket, path)
    except Exception as exc:
        logger.warning(
            "blob_delete_failed",
            extra={"bucket": bucket, "path": path, "error_message": str(exc)},
        )
        return False
    return True
