"""Search across posts and users.

Results are posts (title/content substring, newest first) followed by
users (username/full_name substring).  There is no scoring, interleaving
or de-duplication across kinds.

``SearchDebouncer`` drives search-as-you-type: each keystroke restarts a
short timer, and every issued search carries a generation number so a
response that arrives after a newer query was submitted is dropped
instead of overwriting fresher results.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from app.core.config import settings
from app.core.constants import (
    LIKE_WILDCARDS,
    POSTS_TABLE,
    PROFILES_TABLE,
    SEARCH_RESERVED_CHARS,
)
from app.db.supabase import get_supabase
from app.models.enums import SearchScope
from app.models.search import PostResult, SearchResponse, UserResult
from app.services.profiles import get_author

logger = logging.getLogger(__name__)


def _ilike_pattern(query: str) -> str:
    """Make *query* safe to embed in an ``ilike`` clause of an ``or`` filter.

    Characters that would break the ``or`` expression are dropped, and the
    LIKE wildcards ``%`` and ``_`` are escaped so they match literally.
    """
    cleaned = "".join(ch for ch in query if ch not in SEARCH_RESERVED_CHARS).strip()
    return "".join("\\" + ch if ch in LIKE_WILDCARDS else ch for ch in cleaned)


def _search_posts(pattern: str) -> list[PostResult]:
    client = get_supabase()
    result = (
        client.table(POSTS_TABLE)
        .select("*")
        .or_(f"title.ilike.%{pattern}%,content.ilike.%{pattern}%")
        .order("created_at", desc=True)
        .execute()
    )
    # One author lookup per hit, in hit order
    return [
        PostResult(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            content=row["content"],
            image_url=row.get("image_url"),
            like_count=row.get("like_count") or 0,
            created_at=row.get("created_at"),
            author=get_author(row["user_id"]),
        )
        for row in result.data or []
    ]


def _search_users(pattern: str) -> list[UserResult]:
    client = get_supabase()
    result = (
        client.table(PROFILES_TABLE)
        .select("*")
        .or_(f"username.ilike.%{pattern}%,full_name.ilike.%{pattern}%")
        .execute()
    )
    return [
        UserResult(
            id=row["id"],
            username=row.get("username"),
            full_name=row.get("full_name"),
            avatar_url=row.get("avatar_url"),
            bio=row.get("bio"),
        )
        for row in result.data or []
    ]


def search(query: str, scope: SearchScope | str = SearchScope.all) -> SearchResponse:
    """Run one search.  A blank query returns no results without queries.

    Raises ``ValueError`` for an unknown scope.
    """
    scope = SearchScope(scope)
    pattern = _ilike_pattern(query or "")
    if not pattern:
        return SearchResponse(query=query or "", scope=scope)

    results: list[Any] = []
    if scope in (SearchScope.all, SearchScope.posts):
        results.extend(_search_posts(pattern))
    if scope in (SearchScope.all, SearchScope.users):
        results.extend(_search_users(pattern))

    logger.info(
        "search_completed",
        extra={"query": query, "scope": scope.value, "result_count": len(results)},
    )
    return SearchResponse(query=query, scope=scope, results=results)


# ---------------------------------------------------------------------------
# Search-as-you-type
# ---------------------------------------------------------------------------

Deliver = Callable[[SearchResponse], Awaitable[None]]
OnError = Callable[[Exception], Awaitable[None]]
Runner = Callable[[str, SearchScope], SearchResponse]


class SearchDebouncer:
    """Debounce queries and deliver only the newest generation's results.

    ``submit`` restarts the timer; a query still waiting on its timer is
    cancelled outright.  Once a search is running it is not interrupted,
    but its response is discarded if a newer query was submitted since.
    """

    def __init__(
        self,
        deliver: Deliver,
        delay: float | None = None,
        runner: Runner = search,
        on_error: OnError | None = None,
    ) -> None:
        self._deliver = deliver
        self._on_error = on_error
        self._runner = runner
        self.delay = settings.SEARCH_DEBOUNCE_SECONDS if delay is None else delay
        self.generation = 0
        self.discarded = 0
        self._timer: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[None]] = set()

    async def submit(self, query: str, scope: SearchScope | str = SearchScope.all) -> int:
        """Queue *query*; returns the generation assigned to it."""
        scope = SearchScope(scope)
        self.generation += 1
        generation = self.generation

        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

        if not (query or "").strip():
            await self._deliver(SearchResponse(query=query or "", scope=scope))
            return generation

        self._timer = asyncio.create_task(self._wait_then_search(generation, query, scope))
        return generation

    async def _wait_then_search(self, generation: int, query: str, scope: SearchScope) -> None:
        await asyncio.sleep(self.delay)
        task = asyncio.create_task(self._search(generation, query, scope))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _search(self, generation: int, query: str, scope: SearchScope) -> None:
        try:
            response = await asyncio.to_thread(self._runner, query, scope)
        except Exception as exc:
            logger.error(
                "search_failed",
                extra={"query": query, "generation": generation, "error_message": str(exc)},
            )
            if self._on_error is not None and generation == self.generation:
                await self._on_error(exc)
            return

        if generation != self.generation:
            self.discarded += 1
            logger.debug(
                "search_result_discarded",
                extra={"generation": generation, "latest": self.generation},
            )
            return

        await self._deliver(response)

    async def wait_idle(self) -> None:
        """Wait for the pending timer and every in-flight search."""
        if self._timer is not None:
            await asyncio.gather(self._timer, return_exceptions=True)
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    def close(self) -> None:
        """Cancel the pending timer and in-flight deliveries."""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        for task in list(self._inflight):
            task.cancel()
