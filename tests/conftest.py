"""Shared test fixtures.

Provides an in-memory stand-in for the Supabase client (tables, storage,
rpc and auth), a ``test_client`` for FastAPI and a few seeded users.
"""

from __future__ import annotations

import os
import re
from collections.abc import Generator
from contextlib import ExitStack
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any
from unittest.mock import patch
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key")

ALICE_ID = UUID("11111111-1111-1111-1111-111111111111")
BOB_ID = UUID("22222222-2222-2222-2222-222222222222")
CAROL_ID = UUID("33333333-3333-3333-3333-333333333333")

ALICE_TOKEN = "token-alice"
BOB_TOKEN = "token-bob"

PUBLIC_URL_BASE = "https://test.supabase.co/storage/v1/object/public"

# Every module that reaches the store through ``get_supabase``
SUPABASE_CONSUMERS = (
    "app.core.auth",
    "app.db.storage",
    "app.routers.health",
    "app.services.comments",
    "app.services.counters",
    "app.services.follows",
    "app.services.likes",
    "app.services.posts",
    "app.services.profiles",
    "app.services.search",
)

_INT_ID_TABLES = {"posts", "comments"}
_ROW_DEFAULTS: dict[str, dict[str, Any]] = {
    "posts": {"like_count": 0, "image_url": None, "updated_at": None},
    "comments": {"like_count": 0, "parent_id": None},
    "profiles": {"followers_count": 0, "following_count": 0},
}
_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _same(value: Any, expected: Any) -> bool:
    return value is not None and str(value) == str(expected)


def _unescape_like(pattern: str) -> str:
    assert "%" not in pattern.replace("\\%", ""), "unescaped wildcard in pattern"
    return re.sub(r"\\(.)", r"\1", pattern)


# ---------------------------------------------------------------------------
# Fake Supabase
# ---------------------------------------------------------------------------


class FakeQuery:
    """One fluent PostgREST-style query against a FakeSupabase table."""

    def __init__(self, db: FakeSupabase, table: str) -> None:
        self._db = db
        self._table = table
        self._op = "select"
        self._columns = "*"
        self._count: str | None = None
        self._payload: Any = None
        self._filters: list[Any] = []
        self._order: tuple[str, bool] | None = None
        self._range: tuple[int, int] | None = None
        self._limit: int | None = None

    # -- operations -------------------------------------------------------

    def select(self, columns: str = "*", count: str | None = None) -> FakeQuery:
        self._op, self._columns, self._count = "select", columns, count
        return self

    def insert(self, payload: Any) -> FakeQuery:
        self._op, self._payload = "insert", payload
        return self

    def upsert(self, payload: Any) -> FakeQuery:
        self._op, self._payload = "upsert", payload
        return self

    def update(self, payload: dict[str, Any]) -> FakeQuery:
        self._op, self._payload = "update", payload
        return self

    def delete(self) -> FakeQuery:
        self._op = "delete"
        return self

    # -- filters ----------------------------------------------------------

    def eq(self, column: str, value: Any) -> FakeQuery:
        self._filters.append(lambda row: _same(row.get(column), value))
        return self

    def neq(self, column: str, value: Any) -> FakeQuery:
        self._filters.append(lambda row: not _same(row.get(column), value))
        return self

    def is_(self, column: str, value: str) -> FakeQuery:
        assert value == "null"
        self._filters.append(lambda row: row.get(column) is None)
        return self

    def in_(self, column: str, values: list[Any]) -> FakeQuery:
        wanted = {str(v) for v in values}
        self._filters.append(lambda row: str(row.get(column)) in wanted)
        return self

    def or_(self, expression: str) -> FakeQuery:
        clauses = []
        for part in expression.split(","):
            column, operator, pattern = part.split(".", 2)
            assert operator == "ilike"
            clauses.append((column, _unescape_like(pattern[1:-1]).lower()))

        def matches(row: dict[str, Any]) -> bool:
            return any(
                needle in str(row.get(column) or "").lower()
                for column, needle in clauses
            )

        self._filters.append(matches)
        return self

    def order(self, column: str, desc: bool = False) -> FakeQuery:
        self._order = (column, desc)
        return self

    def range(self, start: int, end: int) -> FakeQuery:
        self._range = (start, end)
        return self

    def limit(self, size: int) -> FakeQuery:
        self._limit = size
        return self

    # -- execution --------------------------------------------------------

    def _matching(self) -> list[dict[str, Any]]:
        rows = self._db.tables.setdefault(self._table, [])
        return [row for row in rows if all(f(row) for f in self._filters)]

    def _project(self, row: dict[str, Any]) -> dict[str, Any]:
        if self._columns.strip() == "*":
            return dict(row)
        names = [c.strip() for c in self._columns.split(",")]
        return {name: row.get(name) for name in names}

    def execute(self) -> SimpleNamespace:
        self._db.calls.append((self._table, self._op))
        if self._table in self._db.failing_tables:
            raise RuntimeError(f"{self._table} is unavailable")

        if self._op == "insert":
            payload = self._payload if isinstance(self._payload, list) else [self._payload]
            return SimpleNamespace(data=[self._db.add(self._table, r) for r in payload], count=None)

        if self._op == "upsert":
            saved = []
            payload = self._payload if isinstance(self._payload, list) else [self._payload]
            for record in payload:
                existing = self._db.find(self._table, record["id"])
                if existing is None:
                    saved.append(self._db.add(self._table, record))
                else:
                    existing.update(record)
                    saved.append(dict(existing))
            return SimpleNamespace(data=saved, count=None)

        rows = self._matching()

        if self._op == "update":
            for row in rows:
                row.update(self._payload)
            return SimpleNamespace(data=[dict(r) for r in rows], count=None)

        if self._op == "delete":
            table = self._db.tables[self._table]
            self._db.tables[self._table] = [
                r for r in table if not any(r is gone for gone in rows)
            ]
            return SimpleNamespace(data=[dict(r) for r in rows], count=None)

        if self._order is not None:
            column, desc = self._order
            rows = sorted(rows, key=lambda r: str(r.get(column) or ""), reverse=desc)
        total = len(rows)
        if self._range is not None:
            rows = rows[self._range[0]:self._range[1] + 1]
        if self._limit is not None:
            rows = rows[: self._limit]
        return SimpleNamespace(
            data=[self._project(r) for r in rows],
            count=total if self._count == "exact" else None,
        )


class FakeBucket:
    def __init__(self, db: FakeSupabase, name: str) -> None:
        self._db = db
        self.name = name

    def upload(self, path: str, data: bytes, file_options: Any = None) -> dict[str, str]:
        if self.name in self._db.failing_buckets:
            raise RuntimeError(f"bucket {self.name} rejected upload")
        self._db.objects[self.name][path] = data
        return {"path": path}

    def get_public_url(self, path: str) -> str:
        return f"{PUBLIC_URL_BASE}/{self.name}/{path}"

    def remove(self, paths: list[str]) -> list[dict[str, str]]:
        if self.name in self._db.failing_buckets:
            raise RuntimeError(f"bucket {self.name} rejected delete")
        for path in paths:
            self._db.objects[self.name].pop(path, None)
        return [{"name": p} for p in paths]


class FakeStorage:
    def __init__(self, db: FakeSupabase) -> None:
        self._db = db

    def from_(self, bucket: str) -> FakeBucket:
        self._db.objects.setdefault(bucket, {})
        return FakeBucket(self._db, bucket)


class FakeAuth:
    def __init__(self) -> None:
        self.users: dict[str, SimpleNamespace] = {}

    def get_user(self, token: str) -> SimpleNamespace:
        if token not in self.users:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=self.users[token])


class FakeRpc:
    def __init__(self, db: FakeSupabase, name: str, params: dict[str, Any]) -> None:
        self._db = db
        self._name = name
        self._params = params

    def execute(self) -> SimpleNamespace:
        self._db.rpc_calls.append((self._name, self._params))
        assert self._name == "increment_counter"
        row = self._db.find(self._params["p_table"], self._params["p_id"])
        field = self._params["p_field"]
        row[field] = max(0, (row.get(field) or 0) + self._params["p_delta"])
        return SimpleNamespace(data=row[field], count=None)


class FakeSupabase:
    """In-memory Supabase client covering the calls the services make."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.objects: dict[str, dict[str, bytes]] = {}
        self.calls: list[tuple[str, str]] = []
        self.rpc_calls: list[tuple[str, dict[str, Any]]] = []
        self.failing_tables: set[str] = set()
        self.failing_buckets: set[str] = set()
        self.storage = FakeStorage(self)
        self.auth = FakeAuth()
        self._next_id = 1
        self._clock = 0

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: dict[str, Any]) -> FakeRpc:
        return FakeRpc(self, name, params)

    # -- helpers for tests ------------------------------------------------

    def add(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        row = {**_ROW_DEFAULTS.get(table, {}), **record}
        if table in _INT_ID_TABLES and row.get("id") is None:
            row["id"] = self._next_id
            self._next_id += 1
        if table in _INT_ID_TABLES and "created_at" not in row:
            self._clock += 1
            row["created_at"] = (_EPOCH + timedelta(minutes=self._clock)).isoformat()
        self.tables.setdefault(table, []).append(row)
        return dict(row)

    def find(self, table: str, row_id: Any) -> dict[str, Any] | None:
        for row in self.tables.get(table, []):
            if _same(row.get("id"), row_id):
                return row
        return None

    def rows(self, table: str) -> list[dict[str, Any]]:
        return self.tables.get(table, [])

    def count_calls(self, table: str, op: str = "select") -> int:
        return self.calls.count((table, op))

    def add_user(
        self,
        user_id: UUID,
        username: str | None,
        token: str | None = None,
        **fields: Any,
    ) -> dict[str, Any]:
        row = self.add(
            "profiles",
            {"id": str(user_id), "username": username, "full_name": None, **fields},
        )
        if token:
            self.auth.users[token] = SimpleNamespace(
                id=str(user_id), email=f"{username or user_id}@example.com"
            )
        return row


@pytest.fixture()
def fake_supabase() -> Generator[FakeSupabase, None, None]:
    """Patch ``get_supabase`` everywhere with an empty in-memory store."""
    fake = FakeSupabase()
    with ExitStack() as stack:
        for module in SUPABASE_CONSUMERS:
            stack.enter_context(patch(f"{module}.get_supabase", return_value=fake))
        yield fake


@pytest.fixture()
def seeded_supabase(fake_supabase: FakeSupabase) -> FakeSupabase:
    """Store with alice and bob signed up (bob without a username yet)."""
    fake_supabase.add_user(ALICE_ID, "alice", ALICE_TOKEN, full_name="Alice Liddell")
    fake_supabase.add_user(BOB_ID, None, BOB_TOKEN)
    return fake_supabase


@pytest.fixture(autouse=True)
def fresh_username_cache() -> Generator[None, None, None]:
    """Each test starts with an empty process-wide username cache."""
    import app.services.username_cache as cache_mod

    cache_mod._cache = None
    yield
    cache_mod._cache = None


@pytest.fixture()
def test_client() -> Generator[TestClient, None, None]:
    """Provide a FastAPI TestClient."""
    from app.main import app

    with TestClient(app) as client:
        yield client


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
