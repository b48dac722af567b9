"""Search endpoints.

``GET`` runs one search.  The WebSocket endpoint is search-as-you-type:
the client sends ``{"q": ..., "type": ...}`` on every keystroke and gets
back only the response for its latest query.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from app.core.errors import GENERIC_ERROR_DETAIL, to_http_exception
from app.models.enums import SearchScope
from app.models.search import SearchResponse
from app.services.search import SearchDebouncer, search

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=SearchResponse)
async def run_search(
    q: str = Query(default="", description="Substring to look for"),
    scope: SearchScope = Query(default=SearchScope.all, alias="type"),
) -> SearchResponse:
    """Matching posts first, then matching users."""
    try:
        return search(q, scope)
    except Exception as exc:
        raise to_http_exception(exc, "search_failed", query=q, scope=scope.value) from exc


@router.websocket("/ws")
async def search_as_you_type(websocket: WebSocket) -> None:
    await websocket.accept()

    async def deliver(response: SearchResponse) -> None:
        await websocket.send_json(response.model_dump(mode="json"))

    async def report(exc: Exception) -> None:
        await websocket.send_json({"error": GENERIC_ERROR_DETAIL})

    debouncer = SearchDebouncer(deliver, on_error=report)
    try:
        while True:
            message = await websocket.receive_json()
            if not isinstance(message, dict):
                await websocket.send_json({"error": "Expected an object with q and type"})
                continue
            try:
                scope = SearchScope(message.get("type") or SearchScope.all)
            except ValueError:
                await websocket.send_json({"error": f"Unknown search type: {message.get('type')}"})
                continue
            await debouncer.submit(str(message.get("q") or ""), scope)
    except WebSocketDisconnect:
        logger.info("search_socket_closed", extra={"generation": debouncer.generation})
    finally:
        debouncer.close()
