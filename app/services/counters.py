"""Denormalized counter maintenance.

``like_count`` on posts/comments and ``followers_count``/``following_count``
on profiles are stored aggregates updated on every toggle instead of being
counted at read time.

The default path is read -> ``max(0, current + delta)`` -> write, as two
independent round trips.  It is not atomic: two actors toggling against the
same row at once can lose an update, and a failure after the like/follow row
changed leaves the counter drifted (no rollback).

With ``settings.ATOMIC_COUNTERS`` enabled the clamp-and-add runs inside the
database through the ``increment_counter`` RPC, which closes the
lost-update window.  The RPC must exist in the Supabase project.
"""

from __future__ import annotations

import logging
from typing import Any

from app.core.config import settings
from app.core.constants import COUNTER_FIELDS, INCREMENT_COUNTER_RPC
from app.core.errors import NotFoundError
from app.db.supabase import get_supabase

logger = logging.getLogger(__name__)


def clamp_count(current: int | None, delta: int) -> int:
    """Return ``current + delta`` floored at zero; None counts as zero."""
    return max(0, (current or 0) + delta)


def _check_counter(table: str, field: str) -> None:
    if field not in COUNTER_FIELDS.get(table, frozenset()):
        raise ValueError(f"Not a counter column: {table}.{field}")


def read_counter(table: str, row_id: Any, field: str) -> int:
    """Fresh read of a counter column.

    Raises ``NotFoundError`` when the row does not exist.
    """
    _check_counter(table, field)
    client = get_supabase()
    result = (
        client.table(table)
        .select(field)
        .eq("id", str(row_id))
        .limit(1)
        .execute()
    )
    if not result.data:
        raise NotFoundError(f"{table} row not found: {row_id}")
    return int(result.data[0].get(field) or 0)


def _rpc_adjust(table: str, row_id: Any, field: str, delta: int) -> int:
    client = get_supabase()
    result = client.rpc(
        INCREMENT_COUNTER_RPC,
        {
            "p_table": table,
            "p_id": str(row_id),
            "p_field": field,
            "p_delta": delta,
        },
    ).execute()
    raw = result.data
    # Scalar functions come back bare or wrapped in a list depending on version
    if isinstance(raw, list):
        raw = raw[0] if raw else 0
    if isinstance(raw, dict):
        raw = raw.get(field, 0)
    return int(raw or 0)


def adjust_counter(table: str, row_id: Any, field: str, delta: int) -> int:
    """Apply *delta* to ``table.field`` for one row and return the new value.

    The value is always read from the store, never taken from the caller,
    and never drops below zero.
    """
    _check_counter(table, field)

    if settings.ATOMIC_COUNTERS:
        new_value = _rpc_adjust(table, row_id, field, delta)
    else:
        current = read_counter(table, row_id, field)
        new_value = clamp_count(current, delta)
        client = get_supabase()
        client.table(table).update({field: new_value}).eq("id", str(row_id)).execute()

    logger.info(
        "counter_adjusted",
        extra={
            "table": table,
            "row_id": str(row_id),
            "field": field,
            "delta": delta,
            "new_value": new_value,
        },
    )
    return new_value
