"""Service-layer exceptions and their HTTP mapping.

Services raise ``ValueError`` for bad input, ``NotFoundError`` for missing
rows, ``ForbiddenError`` when acting on someone else's content and
``TranslationError`` when the translation backend fails.  Anything else
(Supabase/network errors) is logged and reported as a generic 500.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException

logger = logging.getLogger(__name__)

GENERIC_ERROR_DETAIL = "Something went wrong. Please try again."


class NotFoundError(LookupError):
    """Requested row does not exist."""


class ForbiddenError(PermissionError):
    """Caller does not own the row it tries to change."""


class TranslationError(RuntimeError):
    """Translation backend is unconfigured or failed."""


def to_http_exception(exc: Exception, event: str, **context: Any) -> HTTPException:
    """Map a service exception to an ``HTTPException``, logging failures."""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ForbiddenError):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, TranslationError):
        logger.error(event, extra={**context, "error_message": str(exc)})
        return HTTPException(status_code=502, detail=str(exc))
    if isinstance(exc, ValueError):
        return HTTPException(status_code=400, detail=str(exc))

    logger.error(
        event,
        extra={**context, "error_type": type(exc).__name__, "error_message": str(exc)},
    )
    return HTTPException(status_code=500, detail=GENERIC_ERROR_DETAIL)
