"""Shared router helpers."""

from __future__ import annotations

from fastapi import UploadFile


async def read_upload(
    upload: UploadFile | None,
) -> tuple[bytes | None, str | None, str | None]:
    """Return (data, filename, content_type) for an optional file field.

    An empty part (no file chosen in the form) counts as no upload.
    """
    if upload is None or not upload.filename:
        return None, None, None
    data = await upload.read()
    if not data:
        return None, None, None
    return data, upload.filename, upload.content_type
