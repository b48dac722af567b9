"""Text translation via the Google Cloud Translation v2 REST API.

One POST per call with the API key as a query parameter.  An empty target
language means "leave as is": the text is returned without any request.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.core.config import settings
from app.core.errors import TranslationError

logger = logging.getLogger(__name__)


async def translate_text(
    text: str,
    target_language: str | None,
    source_language: str | None = "",
) -> str:
    """Translate *text* into *target_language*.

    *source_language* is auto-detected when empty.  Raises ``TranslationError``
    when no API key is configured or the remote call fails.
    """
    if not target_language:
        return text

    api_key = settings.GOOGLE_TRANSLATE_API_KEY
    if not api_key:
        raise TranslationError("Translation API key is not configured")

    body: dict[str, Any] = {
        "q": text,
        "target": target_language,
        "format": "text",
    }
    if source_language:
        body["source"] = source_language

    try:
        async with httpx.AsyncClient(timeout=settings.TRANSLATE_TIMEOUT_SECONDS) as client:
            response = await client.post(
                settings.TRANSLATE_API_URL,
                params={"key": api_key},
                headers={"Content-Type": "application/json"},
                json=body,
            )
            response.raise_for_status()
            data = response.json()
            translated = data["data"]["translations"][0]["translatedText"]
    except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as exc:
        logger.error(
            "translation_failed",
            extra={
                "target_language": target_language,
                "error_type": type(exc).__name__,
                "error_message": str(exc),
            },
        )
        raise TranslationError(f"Translation failed ({type(exc).__name__}): {exc}") from exc

    logger.info(
        "translation_completed",
        extra={"target_language": target_language, "chars": len(text)},
    )
    return translated
