"""Denormalized counters kept on parent records."""

from __future__ import annotations

from typing import Any

from .collection import KeyedCollection, Record


def _current(record: Record, field_name: str, default: int) -> int:
    value = record.get(field_name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return int(value)


def incremented(record: Record, field_name: str) -> Record:
    updated = dict(record)
    updated[field_name] = _current(record, field_name, 0) + 1
    return updated


def decremented(record: Record, field_name: str) -> Record:
    updated = dict(record)
    updated[field_name] = max(_current(record, field_name, 1) - 1, 0)
    return updated


def adjust_selected_counter(
    parents: KeyedCollection[Record],
    parent_key: Any,
    field_name: str,
    delta: int,
) -> bool:
    """Bump ``field_name`` on the selected parent when ``parent_key`` matches it.

    The parent's list entry gets the same adjustment. Returns ``False`` and
    changes nothing when no parent is selected or the key differs.
    """

    if delta == 0 or parent_key is None or not parents.is_selected(parent_key):
        return False

    step = incremented if delta > 0 else decremented

    def change(record: Record) -> Record:
        for _ in range(abs(delta)):
            record = step(record, field_name)
        return record

    return parents.patch(parent_key, change)
