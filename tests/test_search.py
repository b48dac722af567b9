"""Unit tests for search and the search-as-you-type debouncer."""

from __future__ import annotations

import asyncio
import time
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.models.enums import ResultKind, SearchScope
from app.models.search import SearchResponse
from app.services.search import SearchDebouncer, _ilike_pattern, search
from conftest import ALICE_ID, BOB_ID, CAROL_ID, FakeSupabase


@pytest.fixture()
def searchable(seeded_supabase: FakeSupabase) -> FakeSupabase:
    seeded_supabase.add_user(CAROL_ID, "travelcarol", full_name="Carol Travel")
    seeded_supabase.add(
        "posts",
        {"user_id": str(ALICE_ID), "title": "Travel notes", "content": "Lisbon"},
    )
    seeded_supabase.add(
        "posts",
        {"user_id": str(BOB_ID), "title": "Recipes", "content": "Soup for travel days"},
    )
    seeded_supabase.add(
        "posts",
        {"user_id": str(ALICE_ID), "title": "Unrelated", "content": "Nothing here"},
    )
    return seeded_supabase


class TestSearch:
    """Posts first (newest first), then users."""

    def test_posts_then_users(self, searchable: FakeSupabase) -> None:
        response = search("travel")

        kinds = [r.kind for r in response.results]
        assert kinds == [ResultKind.post, ResultKind.post, ResultKind.user]
        assert [r.title for r in response.results[:2]] == ["Recipes", "Travel notes"]
        assert response.results[2].username == "travelcarol"

    def test_case_insensitive(self, searchable: FakeSupabase) -> None:
        assert len(search("LISBON").results) == 1

    def test_each_post_hit_gets_its_author(self, searchable: FakeSupabase) -> None:
        before = searchable.count_calls("profiles")
        response = search("travel", SearchScope.posts)

        assert searchable.count_calls("profiles") - before == 2
        assert response.results[0].author is not None
        assert str(response.results[0].author.id) == str(BOB_ID)

    def test_scope_filters_kinds(self, searchable: FakeSupabase) -> None:
        users = search("travel", SearchScope.users)
        assert [r.kind for r in users.results] == [ResultKind.user]
        assert searchable.count_calls("posts") == 0

    def test_blank_query_skips_store(self, searchable: FakeSupabase) -> None:
        before = len(searchable.calls)
        response = search("   ")
        assert response.results == []
        assert len(searchable.calls) == before

    def test_reserved_characters_are_stripped(self, searchable: FakeSupabase) -> None:
        assert search("(lisbon),").results[0].title == "Travel notes"

    def test_like_wildcards_match_literally(self, searchable: FakeSupabase) -> None:
        """Given a query with % or _, only literal occurrences match."""
        searchable.add(
            "posts",
            {"user_id": str(ALICE_ID), "title": "50% off", "content": "snake_case tips"},
        )

        assert [r.title for r in search("%", SearchScope.posts).results] == ["50% off"]
        assert [r.title for r in search("e_c", SearchScope.posts).results] == ["50% off"]
        assert search("e%c", SearchScope.posts).results == []

    def test_pattern_escapes_wildcards(self) -> None:
        assert _ilike_pattern(" 100%_(x) ") == "100\\%\\_x"

    def test_unknown_scope(self, searchable: FakeSupabase) -> None:
        with pytest.raises(ValueError):
            search("travel", "groups")


class TestSearchDebouncer:
    """Only the latest submitted query reaches the client."""

    @pytest.mark.asyncio
    async def test_rapid_submissions_collapse(self) -> None:
        """Given three keystrokes inside the delay, one search runs."""
        ran: list[str] = []
        delivered: list[SearchResponse] = []

        def runner(query: str, scope: SearchScope) -> SearchResponse:
            ran.append(query)
            return SearchResponse(query=query, scope=scope)

        async def deliver(response: SearchResponse) -> None:
            delivered.append(response)

        debouncer = SearchDebouncer(deliver, delay=0.05, runner=runner)
        for query in ("t", "tr", "tra"):
            await debouncer.submit(query)
        await debouncer.wait_idle()

        assert ran == ["tra"]
        assert [r.query for r in delivered] == ["tra"]
        assert debouncer.generation == 3

    @pytest.mark.asyncio
    async def test_stale_response_is_discarded(self) -> None:
        """Given a slow older search, its late response never overwrites the newer one."""
        delivered: list[str] = []

        def runner(query: str, scope: SearchScope) -> SearchResponse:
            if query == "slow":
                time.sleep(0.3)
            return SearchResponse(query=query, scope=scope)

        async def deliver(response: SearchResponse) -> None:
            delivered.append(response.query)

        debouncer = SearchDebouncer(deliver, delay=0, runner=runner)
        await debouncer.submit("slow")
        await asyncio.sleep(0.1)
        await debouncer.submit("fast")
        await debouncer.wait_idle()

        assert delivered == ["fast"]
        assert debouncer.discarded == 1

    @pytest.mark.asyncio
    async def test_blank_query_clears_immediately(self) -> None:
        ran: list[str] = []
        delivered: list[SearchResponse] = []

        def runner(query: str, scope: SearchScope) -> SearchResponse:
            ran.append(query)
            return SearchResponse(query=query, scope=scope)

        async def deliver(response: SearchResponse) -> None:
            delivered.append(response)

        debouncer = SearchDebouncer(deliver, delay=0.05, runner=runner)
        await debouncer.submit("travel")
        await debouncer.submit("")
        await debouncer.wait_idle()

        assert ran == []
        assert len(delivered) == 1
        assert delivered[0].results == []

    @pytest.mark.asyncio
    async def test_errors_go_to_callback(self) -> None:
        errors: list[Exception] = []

        def runner(query: str, scope: SearchScope) -> SearchResponse:
            raise RuntimeError("store down")

        async def deliver(response: SearchResponse) -> None:
            raise AssertionError("nothing should be delivered")

        async def on_error(exc: Exception) -> None:
            errors.append(exc)

        debouncer = SearchDebouncer(deliver, delay=0, runner=runner, on_error=on_error)
        await debouncer.submit("travel")
        await debouncer.wait_idle()

        assert len(errors) == 1
        assert str(errors[0]) == "store down"


class TestSearchEndpoints:
    """GET /api/v1/search and the search WebSocket."""

    def test_get_search(self, test_client: TestClient, searchable: FakeSupabase) -> None:
        response = test_client.get("/api/v1/search", params={"q": "travel", "type": "users"})

        assert response.status_code == 200
        body = response.json()
        assert body["scope"] == "users"
        assert [r["username"] for r in body["results"]] == ["travelcarol"]

    def test_get_search_invalid_type_is_422(self, test_client: TestClient) -> None:
        response = test_client.get("/api/v1/search", params={"q": "x", "type": "groups"})
        assert response.status_code == 422

    def test_websocket_search(self, test_client: TestClient, searchable: FakeSupabase) -> None:
        with patch.object(settings, "SEARCH_DEBOUNCE_SECONDS", 0):
            with test_client.websocket_connect("/api/v1/search/ws") as ws:
                ws.send_json({"q": "lisbon", "type": "posts"})
                body = ws.receive_json()

        assert body["query"] == "lisbon"
        assert [r["title"] for r in body["results"]] == ["Travel notes"]
