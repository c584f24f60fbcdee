"""Follow-ups slice.

Follow-ups appear in two lists at once: the global list (rows joined with
their case or task) and the list for the entity currently open. Mutations
are applied to both.
"""

from __future__ import annotations

from typing import Any

from ..api import ApiClient
from ..collection import KeyedCollection, Record
from ..envelope import unwrap_list, unwrap_record
from ..slice import Slice, ThunkResult, replace_list, replace_page, select_record


ENTITY_TYPES = ("case", "task")
STATUSES = ("scheduled", "completed", "cancelled", "overdue")


class FollowUpsSlice(Slice):
    name = "follow_ups"

    def __init__(self, api: ApiClient, page_size: int = 20) -> None:
        super().__init__(api)
        self.follow_ups: KeyedCollection[Record] = KeyedCollection("id")
        self.entity_follow_ups: KeyedCollection[Record] = KeyedCollection("id")
        self.summary: Record | None = None
        self.upcoming: list[Record] = []
        self.filters: dict[str, Any] = {}
        self.entity_loading = False
        self.page_size = page_size

    @property
    def selected_follow_up(self) -> Record | None:
        return self.follow_ups.selected

    def set_filters(self, **filters: Any) -> None:
        self.filters = dict(filters)

    def clear_filters(self) -> None:
        self.filters = {}

    def clear_entity_follow_ups(self) -> None:
        self.entity_follow_ups.reset()

    def clear_selected_follow_up(self) -> None:
        self.follow_ups.clear_selection()

    def fetch_follow_ups(self, page: int = 1, limit: int | None = None) -> ThunkResult[Any]:
        limit = limit or self.page_size
        params = {**self.filters, "page": page, "limit": limit}
        return self._thunk(
            "fetch_follow_ups",
            lambda: self.api.get("/follow-ups", params=params),
            replace_page(self.follow_ups, default_limit=limit),
            fallback="Failed to fetch follow-ups",
        )

    def fetch_entity_follow_ups(self, entity_type: str, entity_id: str) -> ThunkResult[Any]:
        if entity_type not in ENTITY_TYPES:
            return self._reject(
                "fetch_entity_follow_ups",
                "Follow-ups belong to a case or a task.",
                fields={"entity_type": "Must be case or task"},
            )
        return self._thunk(
            "fetch_entity_follow_ups",
            lambda: self.api.get(f"/{entity_type}s/{entity_id}/follow-ups"),
            replace_list(self.entity_follow_ups),
            fallback="Failed to fetch follow-ups",
            flag="entity_loading",
            entity=("follow_ups", entity_type, entity_id),
        )

    def fetch_follow_up(self, follow_up_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "fetch_follow_up",
            lambda: self.api.get(f"/follow-ups/{follow_up_id}"),
            select_record(self.follow_ups),
            fallback="Failed to fetch follow-up",
            entity=("follow_up", follow_up_id),
        )

    def create_follow_up(self, data: Record) -> ThunkResult[Any]:
        def fulfilled(response: Any) -> Record | None:
            record = unwrap_record(response)
            if record is not None:
                self.entity_follow_ups.insert(record)
                self.follow_ups.insert(dict(record))
            return record

        return self._thunk(
            "create_follow_up",
            lambda: self.api.post("/follow-ups", json=data),
            fulfilled,
            fallback="Failed to create follow-up",
        )

    def _apply_change(self, response: Any) -> Record | None:
        record = unwrap_record(response)
        if record is not None:
            self.entity_follow_ups.replace(record)
            self.follow_ups.replace(record, merge=True)
        return record

    def _mutate(self, action: str, follow_up_id: str, request, fallback: str) -> ThunkResult[Any]:
        return self._thunk(
            action,
            request,
            self._apply_change,
            fallback=fallback,
            entity=("follow_up", follow_up_id),
        )

    def update_follow_up(self, follow_up_id: str, data: Record) -> ThunkResult[Any]:
        return self._mutate(
            "update_follow_up",
            follow_up_id,
            lambda: self.api.put(f"/follow-ups/{follow_up_id}", json=data),
            "Failed to update follow-up",
        )

    def complete_follow_up(self, follow_up_id: str, data: Record | None = None) -> ThunkResult[Any]:
        return self._mutate(
            "complete_follow_up",
            follow_up_id,
            lambda: self.api.post(f"/follow-ups/{follow_up_id}/complete", json=data or {}),
            "Failed to complete follow-up",
        )

    def cancel_follow_up(self, follow_up_id: str) -> ThunkResult[Any]:
        return self._mutate(
            "cancel_follow_up",
            follow_up_id,
            lambda: self.api.post(f"/follow-ups/{follow_up_id}/cancel"),
            "Failed to cancel follow-up",
        )

    def reschedule_follow_up(
        self,
        follow_up_id: str,
        new_date: str,
        new_time: str | None = None,
    ) -> ThunkResult[Any]:
        body = {"scheduled_date": new_date, "scheduled_time": new_time}
        return self._mutate(
            "reschedule_follow_up",
            follow_up_id,
            lambda: self.api.post(f"/follow-ups/{follow_up_id}/reschedule", json=body),
            "Failed to reschedule follow-up",
        )

    def delete_follow_up(self, follow_up_id: str) -> ThunkResult[Any]:
        def fulfilled(_: Any) -> str:
            self.entity_follow_ups.remove(follow_up_id)
            self.follow_ups.remove(follow_up_id)
            return follow_up_id

        return self._thunk(
            "delete_follow_up",
            lambda: self.api.delete(f"/follow-ups/{follow_up_id}"),
            fulfilled,
            fallback="Failed to delete follow-up",
            entity=("follow_up", follow_up_id),
        )

    def fetch_summary(self, **filters: Any) -> ThunkResult[Any]:
        def fulfilled(response: Any) -> Record | None:
            self.summary = unwrap_record(response)
            return self.summary

        return self._thunk(
            "fetch_summary",
            lambda: self.api.get("/follow-ups/summary", params=filters),
            fulfilled,
            fallback="Failed to fetch follow-up summary",
            flag="",
        )

    def fetch_upcoming(self, limit: int = 10) -> ThunkResult[Any]:
        def fulfilled(response: Any) -> list[Record]:
            self.upcoming = unwrap_list(response)
            return self.upcoming

        return self._thunk(
            "fetch_upcoming",
            lambda: self.api.get("/follow-ups/upcoming", params={"limit": limit}),
            fulfilled,
            fallback="Failed to fetch upcoming follow-ups",
            flag="",
        )

    def entity_follow_ups_with_status(self, status: str) -> list[Record]:
        if status not in STATUSES:
            raise ValueError(f"Unknown follow-up status: {status}")
        return [item for item in self.entity_follow_ups if item.get("status") == status]

    def scheduled(self) -> list[Record]:
        return self.entity_follow_ups_with_status("scheduled")

    def overdue(self) -> list[Record]:
        return self.entity_follow_ups_with_status("overdue")

    def completed(self) -> list[Record]:
        return self.entity_follow_ups_with_status("completed")
