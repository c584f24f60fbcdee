"""Admin outcome definitions, kept ordered by ``sort_order`` then name."""

from __future__ import annotations

from typing import Any, Iterable

from ..api import ApiClient
from ..collection import KeyedCollection, Record, by_sort_order_then_name
from ..envelope import unwrap_list, unwrap_record
from ..slice import Slice, ThunkResult


class OutcomesSlice(Slice):
    name = "outcomes"

    def __init__(self, api: ApiClient) -> None:
        super().__init__(api)
        self.definitions: KeyedCollection[Record] = KeyedCollection(
            "id", order_by=by_sort_order_then_name
        )
        self.include_inactive = True
        self.saving = False

    def set_include_inactive(self, include_inactive: bool) -> None:
        self.include_inactive = include_inactive

    def fetch_definitions(self, include_inactive: bool | None = None) -> ThunkResult[Any]:
        if include_inactive is None:
            include_inactive = self.include_inactive

        def fulfilled(response: Any) -> list[Record]:
            self.include_inactive = include_inactive
            definitions = unwrap_list(response)
            self.definitions.replace_all(definitions)
            return definitions

        return self._thunk(
            "fetch_definitions",
            lambda: self.api.get("/admin/outcomes", params={"includeInactive": include_inactive}),
            fulfilled,
            fallback="Failed to load outcomes",
        )

    def _upsert(self, response: Any) -> Record | None:
        record = unwrap_record(response)
        if record is not None:
            self.definitions.upsert(record)
        return record

    def _save(self, action: str, request, fallback: str, outcome_id: str | None = None) -> ThunkResult[Any]:
        return self._thunk(
            action,
            request,
            self._upsert,
            fallback=fallback,
            flag="saving",
            entity=("outcome", outcome_id) if outcome_id else None,
        )

    def create_definition(self, data: Record) -> ThunkResult[Any]:
        return self._save(
            "create_definition",
            lambda: self.api.post("/admin/outcomes", json=data),
            "Failed to create outcome",
        )

    def update_definition(self, outcome_id: str, data: Record) -> ThunkResult[Any]:
        return self._save(
            "update_definition",
            lambda: self.api.patch(f"/admin/outcomes/{outcome_id}", json=data),
            "Failed to update outcome",
            outcome_id,
        )

    def enable_definition(self, outcome_id: str) -> ThunkResult[Any]:
        return self._save(
            "enable_definition",
            lambda: self.api.post(f"/admin/outcomes/{outcome_id}/enable"),
            "Failed to enable outcome",
            outcome_id,
        )

    def disable_definition(self, outcome_id: str) -> ThunkResult[Any]:
        return self._save(
            "disable_definition",
            lambda: self.api.post(f"/admin/outcomes/{outcome_id}/disable"),
            "Failed to disable outcome",
            outcome_id,
        )

    def reorder(self, ordered_ids: Iterable[str]) -> ThunkResult[Any]:
        """Send the new order and take the server's list as-is."""

        body = {"orderedIds": list(ordered_ids)}

        def fulfilled(response: Any) -> list[Record]:
            definitions = unwrap_list(response)
            self.definitions.replace_all(definitions)
            return definitions

        return self._thunk(
            "reorder",
            lambda: self.api.post("/admin/outcomes/reorder", json=body),
            fulfilled,
            fallback="Failed to reorder outcomes",
            flag="saving",
        )
