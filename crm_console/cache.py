"""Short-lived cache for settings panels."""

from __future__ import annotations

import copy
import time
from dataclasses import dataclass
from typing import Any, Callable, Hashable


@dataclass
class _Entry:
    value: Any
    cached_at: float


class TTLCache:
    """Values expire ``ttl_seconds`` after they were stored."""

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, _Entry] = {}

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def get(self, key: Hashable) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.cached_at >= self.ttl_seconds:
            self._entries.pop(key, None)
            return None
        return copy.deepcopy(entry.value)

    def set(self, key: Hashable, value: Any) -> None:
        if value is None:
            self._entries.pop(key, None)
            return
        self._entries[key] = _Entry(value=copy.deepcopy(value), cached_at=self._clock())

    def invalidate(self, key: Hashable | None = None) -> None:
        if key is None:
            self._entries.clear()
            return
        self._entries.pop(key, None)
