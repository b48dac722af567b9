"""FastAPI application entry point.

Builds the app, wires CORS from ``settings.ALLOWED_ORIGINS`` and mounts the
feed routers under ``/api/v1``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.logging import setup_logging
from app.routers import comments, health, posts, profiles, search, translate

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

_API_ROUTERS: tuple[tuple[APIRouter, str, str], ...] = (
    (posts.router, "/posts", "Posts"),
    (comments.router, "/comments", "Comments"),
    (profiles.router, "/profiles", "Profiles"),
    (search.router, "/search", "Search"),
    (translate.router, "/translate", "Translation"),
)


def parse_origins(raw: str) -> list[str]:
    """``*`` or a comma separated origin list."""
    raw = raw.strip()
    if raw == "*":
        return ["*"]
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    setup_logging()
    logger.info(
        "app_started",
        extra={
            "atomic_counters": settings.ATOMIC_COUNTERS,
            "translation_enabled": bool(settings.GOOGLE_TRANSLATE_API_KEY),
        },
    )
    yield
    logger.info("app_stopped")


app = FastAPI(
    title="Social Feed API",
    description="Posts, comments, likes, follows, search and translation over Supabase",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=parse_origins(settings.ALLOWED_ORIGINS),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["Health"])
for _router, _path, _tag in _API_ROUTERS:
    app.include_router(_router, prefix=f"{API_PREFIX}{_path}", tags=[_tag])
