"""Volunteers slice: volunteer roster and their assignments."""

from __future__ import annotations

from typing import Any, Iterable

from ..api import ApiClient
from ..collection import KeyedCollection, Record
from ..slice import (
    Slice,
    ThunkResult,
    insert_record,
    remove_key,
    replace_list,
    replace_page,
    replace_record,
    select_record,
)


def _default_filters() -> dict[str, Any]:
    return {
        "search": "",
        "skills": [],
        "availability_status": "",
        "background_check_status": "",
        "is_active": True,
    }


class VolunteersSlice(Slice):
    name = "volunteers"

    def __init__(self, api: ApiClient, page_size: int = 20) -> None:
        super().__init__(api)
        self.volunteers: KeyedCollection[Record] = KeyedCollection("volunteer_id")
        self.assignments: KeyedCollection[Record] = KeyedCollection("assignment_id")
        self.filters = _default_filters()
        self.page_size = page_size

    @property
    def current_volunteer(self) -> Record | None:
        return self.volunteers.selected

    def set_filters(self, **changes: Any) -> bool:
        unknown = set(changes) - set(self.filters)
        if unknown:
            self._reject("set_filters", f"Unknown volunteer filters: {', '.join(sorted(unknown))}")
            return False
        self.filters.update(changes)
        return True

    def clear_filters(self) -> None:
        self.filters = _default_filters()

    def clear_current_volunteer(self) -> None:
        self.volunteers.clear_selection()
        self.assignments.reset()

    def fetch_volunteers(self, page: int = 1, limit: int | None = None) -> ThunkResult[Any]:
        limit = limit or self.page_size
        params = {**self.filters, "page": page, "limit": limit}
        return self._thunk(
            "fetch_volunteers",
            lambda: self.api.get("/volunteers", params=params),
            replace_page(self.volunteers, default_limit=limit),
            fallback="Failed to fetch volunteers",
        )

    def fetch_volunteer(self, volunteer_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "fetch_volunteer",
            lambda: self.api.get(f"/volunteers/{volunteer_id}"),
            select_record(self.volunteers),
            fallback="Failed to fetch volunteer",
            entity=("volunteer", volunteer_id),
        )

    def search_by_skills(self, skills: Iterable[str]) -> ThunkResult[Any]:
        wanted = [skill.strip() for skill in skills if skill and skill.strip()]
        if not wanted:
            return self._reject("search_by_skills", "Enter at least one skill to search.")
        return self._thunk(
            "search_by_skills",
            lambda: self.api.get("/volunteers/search/skills", params={"skills": wanted}),
            replace_list(self.volunteers),
            fallback="Failed to search volunteers",
        )

    def create_volunteer(self, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "create_volunteer",
            lambda: self.api.post("/volunteers", json=data),
            insert_record(self.volunteers),
            fallback="Failed to create volunteer",
        )

    def update_volunteer(self, volunteer_id: str, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "update_volunteer",
            lambda: self.api.put(f"/volunteers/{volunteer_id}", json=data),
            replace_record(self.volunteers),
            fallback="Failed to update volunteer",
            entity=("volunteer", volunteer_id),
        )

    def delete_volunteer(self, volunteer_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "delete_volunteer",
            lambda: self.api.delete(f"/volunteers/{volunteer_id}"),
            remove_key(self.volunteers, volunteer_id),
            fallback="Failed to delete volunteer",
            entity=("volunteer", volunteer_id),
        )

    def fetch_assignments(self, volunteer_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "fetch_assignments",
            lambda: self.api.get(f"/volunteers/{volunteer_id}/assignments"),
            replace_list(self.assignments),
            fallback="Failed to fetch assignments",
            entity=("assignments", volunteer_id),
        )

    def create_assignment(self, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "create_assignment",
            lambda: self.api.post("/volunteers/assignments", json=data),
            insert_record(self.assignments),
            fallback="Failed to create assignment",
        )

    def update_assignment(self, assignment_id: str, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "update_assignment",
            lambda: self.api.put(f"/volunteers/assignments/{assignment_id}", json=data),
            replace_record(self.assignments),
            fallback="Failed to update assignment",
            entity=("assignment", assignment_id),
        )
