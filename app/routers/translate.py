"""Free-text translation endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from app.core.errors import to_http_exception
from app.services.translation import translate_text

logger = logging.getLogger(__name__)

router = APIRouter()


class TranslateRequest(BaseModel):
    text: str = ""
    target_language: str | None = None
    source_language: str | None = None


class TranslateResponse(BaseModel):
    translated_text: str


@router.post("", response_model=TranslateResponse)
async def translate(body: TranslateRequest) -> TranslateResponse:
    """Translate *text*; without a target language it comes back unchanged."""
    if not body.text:
        raise HTTPException(status_code=400, detail="No text to translate")

    try:
        translated = await translate_text(
            body.text, body.target_language, body.source_language or ""
        )
    except Exception as exc:
        raise to_http_exception(
            exc, "translate_failed", target_language=body.target_language
        ) from exc

    return TranslateResponse(translated_text=translated)
