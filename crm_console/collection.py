"""Keyed record collections with a mirrored single selection."""

from __future__ import annotations

from typing import Any, Callable, Generic, Iterable, Iterator, Literal, TypeVar

from .envelope import Pagination


Record = dict[str, Any]
T = TypeVar("T", bound=dict)

InsertAt = Literal["start", "end"]


def _key_getter(key: str | Callable[[Any], Any]) -> Callable[[Any], Any]:
    if callable(key):
        return key
    field_name = key

    def get(record: Any) -> Any:
        return record.get(field_name)

    return get


def by_sort_order_then_name(record: Record) -> tuple[float, str]:
    order = record.get("sort_order")
    if isinstance(order, bool) or not isinstance(order, (int, float)):
        order = 0
    return (order, str(record.get("name") or "").casefold())


class KeyedCollection(Generic[T]):
    """Ordered records keyed by one field, plus an optional selected record.

    The selection mirrors an entry of the list: replacing or removing a key
    updates or clears the selection in the same call.
    """

    def __init__(
        self,
        key: str | Callable[[T], Any],
        insert_at: InsertAt = "start",
        order_by: Callable[[T], Any] | None = None,
    ) -> None:
        self._key = _key_getter(key)
        self.insert_at: InsertAt = insert_at
        self.order_by = order_by
        self.items: list[T] = []
        self.selected: T | None = None
        self.pagination = Pagination()

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self.items))

    def __contains__(self, key: object) -> bool:
        return self.index_of(key) != -1

    def key_of(self, record: T) -> Any:
        return self._key(record)

    def keys(self) -> list[Any]:
        return [self._key(record) for record in self.items]

    def index_of(self, key: Any) -> int:
        for index, record in enumerate(self.items):
            if self._key(record) == key:
                return index
        return -1

    def find(self, key: Any) -> T | None:
        index = self.index_of(key)
        if index == -1:
            return None
        return self.items[index]

    def is_selected(self, key: Any) -> bool:
        return self.selected is not None and self._key(self.selected) == key

    def replace_all(
        self,
        items: Iterable[T],
        pagination: Pagination | None = None,
    ) -> None:
        self.items = list(items)
        if pagination is not None:
            self.pagination = pagination
        if self.selected is not None:
            fresh = self.find(self._key(self.selected))
            if fresh is not None:
                self.selected = fresh

    def insert(self, record: T) -> None:
        key = self._key(record)
        self.items = [item for item in self.items if self._key(item) != key]

        if self.order_by is not None:
            self.items.append(record)
            self.items.sort(key=self.order_by)
        elif self.insert_at == "start":
            self.items.insert(0, record)
        else:
            self.items.append(record)

        if self.is_selected(key):
            self.selected = record

    def replace(self, record: T, merge: bool = False) -> bool:
        key = self._key(record)
        index = self.index_of(key)
        if index != -1:
            if merge:
                merged = dict(self.items[index])
                merged.update(record)
                self.items[index] = merged  # type: ignore[assignment]
            else:
                self.items[index] = record
            if self.order_by is not None:
                self.items.sort(key=self.order_by)

        if self.is_selected(key):
            if merge and self.selected is not None:
                merged_selection = dict(self.selected)
                merged_selection.update(record)
                self.selected = merged_selection  # type: ignore[assignment]
            else:
                self.selected = record
        return index != -1

    def upsert(self, record: T) -> None:
        if not self.replace(record):
            self.insert(record)

    def remove(self, key: Any) -> T | None:
        removed = self.find(key)
        self.items = [item for item in self.items if self._key(item) != key]
        if self.is_selected(key):
            if removed is None:
                removed = self.selected
            self.selected = None
        return removed

    def patch(self, key: Any, change: Callable[[T], T]) -> bool:
        """Apply ``change`` to copies of the list entry and the selection."""

        touched = False
        index = self.index_of(key)
        if index != -1:
            self.items[index] = change(dict(self.items[index]))  # type: ignore[arg-type]
            touched = True
        if self.selected is not None and self._key(self.selected) == key:
            self.selected = change(dict(self.selected))  # type: ignore[arg-type]
            touched = True
        return touched

    def select(self, record: T | None) -> None:
        self.selected = record

    def select_key(self, key: Any) -> T | None:
        self.selected = self.find(key)
        return self.selected

    def clear_selection(self) -> None:
        self.selected = None

    def reset(self) -> None:
        self.items = []
        self.selected = None
        self.pagination = Pagination(limit=self.pagination.limit)
