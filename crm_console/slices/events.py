"""Events slice: events, their registrations, and attendance counters."""

from __future__ import annotations

from typing import Any

from ..api import ApiClient
from ..collection import KeyedCollection, Record
from ..counters import adjust_selected_counter
from ..envelope import unwrap_record
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


REGISTRATION_STATUSES = ("registered", "waitlisted", "cancelled", "confirmed", "no_show")


class EventsSlice(Slice):
    name = "events"

    def __init__(self, api: ApiClient, page_size: int = 20) -> None:
        super().__init__(api)
        self.events: KeyedCollection[Record] = KeyedCollection("event_id")
        self.registrations: KeyedCollection[Record] = KeyedCollection("registration_id")
        self.page_size = page_size

    @property
    def selected_event(self) -> Record | None:
        return self.events.selected

    def clear_selected_event(self) -> None:
        self.events.clear_selection()

    def clear_registrations(self) -> None:
        self.registrations.reset()

    # Events

    def fetch_events(
        self,
        page: int = 1,
        limit: int | None = None,
        **filters: Any,
    ) -> ThunkResult[Any]:
        limit = limit or self.page_size
        params = {**filters, "page": page, "limit": limit}
        return self._thunk(
            "fetch_events",
            lambda: self.api.get("/events", params=params),
            replace_page(self.events, default_limit=limit),
            fallback="Failed to fetch events",
        )

    def fetch_event(self, event_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "fetch_event",
            lambda: self.api.get(f"/events/{event_id}"),
            select_record(self.events),
            fallback="Failed to fetch event",
            entity=("event", event_id),
        )

    def create_event(self, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "create_event",
            lambda: self.api.post("/events", json=data),
            insert_record(self.events),
            fallback="Failed to create event",
        )

    def update_event(self, event_id: str, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "update_event",
            lambda: self.api.put(f"/events/{event_id}", json=data),
            replace_record(self.events),
            fallback="Failed to update event",
            entity=("event", event_id),
        )

    def delete_event(self, event_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "delete_event",
            lambda: self.api.delete(f"/events/{event_id}"),
            remove_key(self.events, event_id),
            fallback="Failed to delete event",
            entity=("event", event_id),
        )

    # Registrations

    def fetch_event_registrations(self, event_id: str, **filters: Any) -> ThunkResult[Any]:
        return self._thunk(
            "fetch_event_registrations",
            lambda: self.api.get(f"/events/{event_id}/registrations", params=filters),
            replace_list(self.registrations),
            fallback="Failed to fetch registrations",
            entity=("registrations", "event", event_id),
        )

    def fetch_contact_registrations(self, contact_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "fetch_contact_registrations",
            lambda: self.api.get("/events/registrations", params={"contact_id": contact_id}),
            replace_list(self.registrations),
            fallback="Failed to fetch contact registrations",
            entity=("registrations", "contact", contact_id),
        )

    def register_contact(
        self,
        event_id: str,
        contact_id: str,
        registration_status: str | None = None,
        notes: str | None = None,
    ) -> ThunkResult[Any]:
        if registration_status and registration_status not in REGISTRATION_STATUSES:
            return self._reject(
                "register_contact",
                f"Unknown registration status: {registration_status}",
                fields={"registration_status": "Unknown status"},
            )
        body = {
            "contact_id": contact_id,
            "registration_status": registration_status,
            "notes": notes,
        }
        insert = insert_record(self.registrations)

        def fulfilled(response: Any) -> Record | None:
            record = insert(response)
            if record is not None:
                adjust_selected_counter(
                    self.events, record.get("event_id", event_id), "registered_count", 1
                )
            return record

        return self._thunk(
            "register_contact",
            lambda: self.api.post(f"/events/{event_id}/register", json=body),
            fulfilled,
            fallback="Failed to register contact",
        )

    def update_registration(self, registration_id: str, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "update_registration",
            lambda: self.api.put(f"/events/registrations/{registration_id}", json=data),
            replace_record(self.registrations),
            fallback="Failed to update registration",
            entity=("registration", registration_id),
        )

    def check_in(self, registration_id: str) -> ThunkResult[Any]:
        """Check an attendee in.

        The server answers ``{success, registration}``; only a successful
        result touches the registration list and ``attended_count``.
        """

        def fulfilled(response: Any) -> Record | None:
            result = unwrap_record(response) or {}
            registration = result.get("registration")
            if not result.get("success") or not isinstance(registration, dict):
                return result
            self.registrations.replace(registration)
            adjust_selected_counter(
                self.events, registration.get("event_id"), "attended_count", 1
            )
            return result

        return self._thunk(
            "check_in",
            lambda: self.api.post(f"/events/registrations/{registration_id}/check-in"),
            fulfilled,
            fallback="Failed to check in attendee",
            entity=("registration", registration_id),
        )

    def cancel_registration(self, registration_id: str) -> ThunkResult[Any]:
        def fulfilled(_: Any) -> str:
            removed = self.registrations.remove(registration_id)
            if removed is not None:
                adjust_selected_counter(
                    self.events, removed.get("event_id"), "registered_count", -1
                )
            return registration_id

        return self._thunk(
            "cancel_registration",
            lambda: self.api.delete(f"/events/registrations/{registration_id}"),
            fulfilled,
            fallback="Failed to cancel registration",
            entity=("registration", registration_id),
        )
