"""Case management slice.

Cases carry four child collections for the current case (notes, milestones,
relationships, services), a bulk selection of case ids for status changes,
and the outcome impacts recorded against individual case notes.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

from ..api import ApiClient
from ..collection import KeyedCollection, Record
from ..counters import adjust_selected_counter
from ..envelope import Pagination, unwrap, unwrap_list, unwrap_record
from ..slice import (
    Slice,
    ThunkResult,
    insert_record,
    remove_key,
    replace_list,
    replace_record,
    select_record,
)


PRIORITIES = ("low", "medium", "high", "urgent")
CLOSED_STATUS_TYPES = ("closed", "cancelled")


def _default_filters() -> dict[str, Any]:
    return {
        "page": 1,
        "limit": 20,
        "sort_by": "created_at",
        "sort_order": "desc",
    }


def parse_due_date(value: Any) -> datetime | None:
    """Parse an ISO date or timestamp; naive values are taken as UTC."""

    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_active_case(case: Record) -> bool:
    return case.get("status_type") not in CLOSED_STATUS_TYPES


class CasesSlice(Slice):
    name = "cases"

    def __init__(self, api: ApiClient, page_size: int = 20) -> None:
        super().__init__(api)
        self.cases: KeyedCollection[Record] = KeyedCollection("id")
        self.total = 0
        self.filters = {**_default_filters(), "limit": page_size}
        self.page_size = page_size
        self.selected_case_ids: list[Any] = []

        self.notes: KeyedCollection[Record] = KeyedCollection("id")
        self.milestones: KeyedCollection[Record] = KeyedCollection("id", insert_at="end")
        self.relationships: KeyedCollection[Record] = KeyedCollection("id")
        self.services: KeyedCollection[Record] = KeyedCollection("id")

        self.case_types: list[Record] = []
        self.case_statuses: list[Record] = []
        self.summary: Record | None = None

        self.outcome_definitions: list[Record] = []
        self.interaction_outcome_impacts: dict[Any, list[Record]] = {}
        self.outcomes_loading = False
        self.outcomes_saving = False
        self.outcomes_error: str | None = None

    @property
    def current_case(self) -> Record | None:
        return self.cases.selected

    def clear_error(self) -> None:
        super().clear_error()
        self.outcomes_error = None

    def set_filters(self, **changes: Any) -> None:
        self.filters = {**self.filters, **changes}

    def clear_filters(self) -> None:
        self.filters = {**_default_filters(), "limit": self.page_size}

    def clear_current_case(self) -> None:
        self.cases.clear_selection()
        for collection in (self.notes, self.milestones, self.relationships, self.services):
            collection.reset()
        self.interaction_outcome_impacts = {}

    # Bulk selection

    def toggle_case_selection(self, case_id: Any) -> None:
        if case_id in self.selected_case_ids:
            self.selected_case_ids.remove(case_id)
        else:
            self.selected_case_ids.append(case_id)

    def select_all_cases(self) -> None:
        self.selected_case_ids = self.cases.keys()

    def clear_case_selection(self) -> None:
        self.selected_case_ids = []

    # Cases

    def fetch_cases(self, **overrides: Any) -> ThunkResult[Any]:
        params = {**self.filters, **overrides}

        def fulfilled(response: Any) -> list[Record]:
            body = unwrap(response)
            items = unwrap_list(body, "cases")
            self.cases.replace_all(items)
            self.total = Pagination.from_payload(body, item_count=len(items)).total
            return items

        return self._thunk(
            "fetch_cases",
            lambda: self.api.get("/cases", params=params),
            fulfilled,
            fallback="Failed to fetch cases",
        )

    def fetch_case(self, case_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "fetch_case",
            lambda: self.api.get(f"/cases/{case_id}"),
            select_record(self.cases),
            fallback="Failed to fetch case",
            entity=("case", case_id),
        )

    def create_case(self, data: Record) -> ThunkResult[Any]:
        insert = insert_record(self.cases)

        def fulfilled(response: Any) -> Record | None:
            record = insert(response)
            if record is not None:
                self.total += 1
            return record

        return self._thunk(
            "create_case",
            lambda: self.api.post("/cases", json=data),
            fulfilled,
            fallback="Failed to create case",
        )

    def update_case(self, case_id: str, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "update_case",
            lambda: self.api.put(f"/cases/{case_id}", json=data),
            replace_record(self.cases),
            fallback="Failed to update case",
            entity=("case", case_id),
        )

    def delete_case(self, case_id: str) -> ThunkResult[Any]:
        def fulfilled(_: Any) -> str:
            self.cases.remove(case_id)
            self.total = max(self.total - 1, 0)
            if case_id in self.selected_case_ids:
                self.selected_case_ids.remove(case_id)
            return case_id

        return self._thunk(
            "delete_case",
            lambda: self.api.delete(f"/cases/{case_id}"),
            fulfilled,
            fallback="Failed to delete case",
            entity=("case", case_id),
        )

    def update_status(
        self,
        case_id: str,
        new_status_id: str,
        notes: str | None = None,
    ) -> ThunkResult[Any]:
        body = {"new_status_id": new_status_id, "notes": notes}
        return self._thunk(
            "update_status",
            lambda: self.api.put(f"/cases/{case_id}/status", json=body),
            replace_record(self.cases),
            fallback="Failed to update status",
            entity=("case", case_id),
        )

    def reassign(
        self,
        case_id: str,
        assigned_to: str | None,
        reason: str | None = None,
    ) -> ThunkResult[Any]:
        body = {"assigned_to": assigned_to, "reason": reason}
        return self._thunk(
            "reassign",
            lambda: self.api.put(f"/cases/{case_id}/reassign", json=body),
            replace_record(self.cases),
            fallback="Failed to reassign case",
            entity=("case", case_id),
        )

    def bulk_update_status(
        self,
        new_status_id: str,
        case_ids: Iterable[Any] | None = None,
        notes: str | None = None,
    ) -> ThunkResult[Any]:
        ids = list(self.selected_case_ids if case_ids is None else case_ids)
        if not ids:
            return self._reject("bulk_update_status", "Select at least one case to update.")
        body = {"case_ids": ids, "new_status_id": new_status_id, "notes": notes}

        def fulfilled(response: Any) -> Any:
            self.selected_case_ids = []
            return unwrap(response)

        return self._thunk(
            "bulk_update_status",
            lambda: self.api.post("/cases/bulk-status", json=body),
            fulfilled,
            fallback="Failed to bulk update status",
        )

    # Lookups

    def fetch_case_types(self) -> ThunkResult[Any]:
        def fulfilled(response: Any) -> list[Record]:
            self.case_types = unwrap_list(response, "types")
            return self.case_types

        return self._thunk(
            "fetch_case_types",
            lambda: self.api.get("/cases/types"),
            fulfilled,
            fallback="Failed to fetch case types",
            flag="",
        )

    def fetch_case_statuses(self) -> ThunkResult[Any]:
        def fulfilled(response: Any) -> list[Record]:
            self.case_statuses = unwrap_list(response, "statuses")
            return self.case_statuses

        return self._thunk(
            "fetch_case_statuses",
            lambda: self.api.get("/cases/statuses"),
            fulfilled,
            fallback="Failed to fetch case statuses",
            flag="",
        )

    def fetch_summary(self) -> ThunkResult[Any]:
        def fulfilled(response: Any) -> Record | None:
            self.summary = unwrap_record(response)
            return self.summary

        return self._thunk(
            "fetch_summary",
            lambda: self.api.get("/cases/summary"),
            fulfilled,
            fallback="Failed to fetch case summary",
            flag="",
        )

    # Notes

    def fetch_notes(self, case_id: str) -> ThunkResult[Any]:
        store_notes = replace_list(self.notes, "notes")

        def fulfilled(response: Any) -> list[Record]:
            notes = store_notes(response)
            self.interaction_outcome_impacts = {
                note.get("id"): list(note.get("outcome_impacts") or []) for note in notes
            }
            return notes

        return self._thunk(
            "fetch_notes",
            lambda: self.api.get(f"/cases/{case_id}/notes"),
            fulfilled,
            fallback="Failed to fetch notes",
            entity=("notes", "case", case_id),
        )

    def create_note(self, case_id: str, data: Record) -> ThunkResult[Any]:
        body = {**data, "case_id": case_id}
        insert = insert_record(self.notes)

        def fulfilled(response: Any) -> Record | None:
            record = insert(response)
            if record is not None:
                adjust_selected_counter(
                    self.cases, record.get("case_id", case_id), "notes_count", 1
                )
            return record

        return self._thunk(
            "create_note",
            lambda: self.api.post("/cases/notes", json=body),
            fulfilled,
            fallback="Failed to create note",
        )

    # Milestones

    def fetch_milestones(self, case_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "fetch_milestones",
            lambda: self.api.get(f"/cases/{case_id}/milestones"),
            replace_list(self.milestones, "milestones"),
            fallback="Failed to fetch milestones",
            flag="",
            entity=("milestones", "case", case_id),
        )

    def create_milestone(self, case_id: str, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "create_milestone",
            lambda: self.api.post(f"/cases/{case_id}/milestones", json=data),
            insert_record(self.milestones),
            fallback="Failed to create milestone",
            flag="",
        )

    def update_milestone(self, milestone_id: str, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "update_milestone",
            lambda: self.api.put(f"/cases/milestones/{milestone_id}", json=data),
            replace_record(self.milestones),
            fallback="Failed to update milestone",
            flag="",
            entity=("milestone", milestone_id),
        )

    def delete_milestone(self, milestone_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "delete_milestone",
            lambda: self.api.delete(f"/cases/milestones/{milestone_id}"),
            remove_key(self.milestones, milestone_id),
            fallback="Failed to delete milestone",
            flag="",
            entity=("milestone", milestone_id),
        )

    # Relationships

    def fetch_relationships(self, case_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "fetch_relationships",
            lambda: self.api.get(f"/cases/{case_id}/relationships"),
            replace_list(self.relationships, "relationships"),
            fallback="Failed to fetch case relationships",
            flag="",
            entity=("relationships", "case", case_id),
        )

    def create_relationship(self, case_id: str, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "create_relationship",
            lambda: self.api.post(f"/cases/{case_id}/relationships", json=data),
            insert_record(self.relationships),
            fallback="Failed to create case relationship",
            flag="",
        )

    def delete_relationship(self, relationship_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "delete_relationship",
            lambda: self.api.delete(f"/cases/relationships/{relationship_id}"),
            remove_key(self.relationships, relationship_id),
            fallback="Failed to delete case relationship",
            flag="",
            entity=("relationship", relationship_id),
        )

    # Services

    def fetch_services(self, case_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "fetch_services",
            lambda: self.api.get(f"/cases/{case_id}/services"),
            replace_list(self.services, "services"),
            fallback="Failed to fetch case services",
            flag="",
            entity=("services", "case", case_id),
        )

    def create_service(self, case_id: str, data: Record) -> ThunkResult[Any]:
        insert = insert_record(self.services)

        def fulfilled(response: Any) -> Record | None:
            record = insert(response)
            if record is not None:
                adjust_selected_counter(
                    self.cases, record.get("case_id", case_id), "services_count", 1
                )
            return record

        return self._thunk(
            "create_service",
            lambda: self.api.post(f"/cases/{case_id}/services", json=data),
            fulfilled,
            fallback="Failed to create case service",
            flag="",
        )

    def update_service(self, service_id: str, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "update_service",
            lambda: self.api.put(f"/cases/services/{service_id}", json=data),
            replace_record(self.services),
            fallback="Failed to update case service",
            flag="",
            entity=("service", service_id),
        )

    def delete_service(self, service_id: str) -> ThunkResult[Any]:
        def fulfilled(_: Any) -> str:
            removed = self.services.remove(service_id)
            if removed is not None:
                adjust_selected_counter(self.cases, removed.get("case_id"), "services_count", -1)
            return service_id

        return self._thunk(
            "delete_service",
            lambda: self.api.delete(f"/cases/services/{service_id}"),
            fulfilled,
            fallback="Failed to delete case service",
            flag="",
            entity=("service", service_id),
        )

    # Outcome definitions and interaction outcomes

    def fetch_outcome_definitions(self, include_inactive: bool = False) -> ThunkResult[Any]:
        def fulfilled(response: Any) -> list[Record]:
            self.outcome_definitions = unwrap_list(response)
            return self.outcome_definitions

        return self._thunk(
            "fetch_outcome_definitions",
            lambda: self.api.get(
                "/cases/outcomes/definitions",
                params={"includeInactive": include_inactive},
            ),
            fulfilled,
            fallback="Failed to fetch outcome definitions",
            flag="outcomes_loading",
            error_attr="outcomes_error",
        )

    def _apply_impacts(self, interaction_id: Any, impacts: list[Record]) -> list[Record]:
        self.interaction_outcome_impacts[interaction_id] = impacts

        def attach(note: Record) -> Record:
            note["outcome_impacts"] = impacts
            return note

        self.notes.patch(interaction_id, attach)
        return impacts

    def fetch_interaction_outcomes(self, case_id: str, interaction_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "fetch_interaction_outcomes",
            lambda: self.api.get(f"/cases/{case_id}/interactions/{interaction_id}/outcomes"),
            lambda response: self._apply_impacts(interaction_id, unwrap_list(response)),
            fallback="Failed to fetch interaction outcomes",
            flag="outcomes_loading",
            entity=("interaction_outcomes", interaction_id),
            error_attr="outcomes_error",
        )

    def save_interaction_outcomes(
        self,
        case_id: str,
        interaction_id: str,
        data: Record,
    ) -> ThunkResult[Any]:
        return self._thunk(
            "save_interaction_outcomes",
            lambda: self.api.put(
                f"/cases/{case_id}/interactions/{interaction_id}/outcomes", json=data
            ),
            lambda response: self._apply_impacts(interaction_id, unwrap_list(response)),
            fallback="Failed to save interaction outcomes",
            flag="outcomes_saving",
            entity=("interaction_outcomes", interaction_id),
            error_attr="outcomes_error",
        )

    # Selectors

    def cases_by_assignee(self, user_id: Any) -> list[Record]:
        return [case for case in self.cases if case.get("assigned_to") == user_id]

    def cases_by_contact(self, contact_id: Any) -> list[Record]:
        return [case for case in self.cases if case.get("contact_id") == contact_id]

    def urgent_cases(self) -> list[Record]:
        return [
            case
            for case in self.cases
            if case.get("is_urgent") or case.get("priority") == "urgent"
        ]

    def overdue_cases(self, now: datetime | None = None) -> list[Record]:
        now = now or datetime.now(timezone.utc)
        overdue = []
        for case in self.cases:
            due = parse_due_date(case.get("due_date"))
            if is_active_case(case) and due is not None and due < now:
                overdue.append(case)
        return overdue

    def cases_due_within(self, days: int = 7, now: datetime | None = None) -> list[Record]:
        now = now or datetime.now(timezone.utc)
        horizon = now + timedelta(days=days)
        due_soon = []
        for case in self.cases:
            due = parse_due_date(case.get("due_date"))
            if is_active_case(case) and due is not None and now <= due <= horizon:
                due_soon.append(case)
        return due_soon

    def unassigned_cases(self) -> list[Record]:
        return [case for case in self.cases if not case.get("assigned_to") and is_active_case(case)]

    def active_cases(self) -> list[Record]:
        return [case for case in self.cases if is_active_case(case)]

    def counts_by_priority(self) -> dict[str, int]:
        counts = {priority: 0 for priority in PRIORITIES}
        for case in self.active_cases():
            priority = case.get("priority")
            if priority in counts:
                counts[priority] += 1
        return counts
