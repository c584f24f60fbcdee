"""Per-entity request tickets for discarding out-of-order responses."""

from __future__ import annotations

import itertools
import threading
from typing import Hashable


class RequestSequencer:
    """Issue increasing tickets per key; only the newest ticket is current."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._latest: dict[Hashable, int] = {}
        self._lock = threading.Lock()

    def issue(self, key: Hashable) -> int:
        with self._lock:
            ticket = next(self._counter)
            self._latest[key] = ticket
            return ticket

    def is_current(self, key: Hashable, ticket: int) -> bool:
        with self._lock:
            return self._latest.get(key) == ticket
