"""Liveness plus a real round trip to the Content Store."""

import logging
from typing import Any

from fastapi import APIRouter
from starlette.responses import JSONResponse

from app.core.config import settings
from app.core.constants import PROFILES_TABLE
from app.db.supabase import get_supabase

logger = logging.getLogger(__name__)

router = APIRouter()


def _store_reachable() -> bool:
    try:
        get_supabase().table(PROFILES_TABLE).select("id").limit(1).execute()
    except Exception:
        logger.warning("health_store_unreachable", exc_info=True)
        return False
    return True


@router.get("/health")
async def health_check() -> Any:
    """200 with feature flags when Supabase answers, 503 otherwise."""
    connected = _store_reachable()
    payload: dict[str, Any] = {
        "status": "ok" if connected else "degraded",
        "database": "connected" if connected else "disconnected",
        "translation": "configured" if settings.GOOGLE_TRANSLATE_API_KEY else "disabled",
        "atomic_counters": settings.ATOMIC_COUNTERS,
    }
    if not connected:
        return JSONResponse(status_code=503, content=payload)
    return payload
