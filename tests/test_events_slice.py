from __future__ import annotations

from crm_console.slices.events import EventsSlice


def _build_slice(api, registered_count: int = 5) -> EventsSlice:  # type: ignore[no-untyped-def]
    events = EventsSlice(api)
    event = {"event_id": "e1", "event_name": "Gala", "registered_count": registered_count, "attended_count": 0}
    events.events.replace_all([event])
    events.events.select(dict(event))
    return events


def test_register_then_cancel_restores_count(api, session) -> None:  # type: ignore[no-untyped-def]
    events = _build_slice(api)
    session.respond("POST", "/events/e1/register", {"registration_id": "r1", "event_id": "e1", "contact_id": "c1"})
    session.respond("DELETE", "/events/registrations/r1", None, status=204)

    events.register_contact("e1", "c1", registration_status="registered")
    assert events.selected_event["registered_count"] == 6
    assert events.events.find("e1")["registered_count"] == 6
    assert events.registrations.keys() == ["r1"]

    events.cancel_registration("r1")
    assert events.selected_event["registered_count"] == 5
    assert events.registrations.keys() == []


def test_cancel_clamps_registered_count_at_zero(api, session) -> None:  # type: ignore[no-untyped-def]
    events = _build_slice(api, registered_count=0)
    events.registrations.replace_all([{"registration_id": "r1", "event_id": "e1"}])
    session.respond("DELETE", "/events/registrations/r1", None, status=204)

    events.cancel_registration("r1")

    assert events.selected_event["registered_count"] == 0


def test_register_for_other_event_leaves_counter(api, session) -> None:  # type: ignore[no-untyped-def]
    events = _build_slice(api)
    session.respond("POST", "/events/e2/register", {"registration_id": "r9", "event_id": "e2"})

    events.register_contact("e2", "c1")

    assert events.selected_event["registered_count"] == 5


def test_register_sends_contact_and_status(api, session) -> None:  # type: ignore[no-untyped-def]
    events = _build_slice(api)
    session.respond("POST", "/events/e1/register", {"registration_id": "r1", "event_id": "e1"})

    events.register_contact("e1", "c1", registration_status="waitlisted", notes="Plus one")

    assert session.last("POST", "/events/e1/register")["json"] == {
        "contact_id": "c1",
        "registration_status": "waitlisted",
        "notes": "Plus one",
    }


def test_successful_check_in_updates_registration_and_attendance(api, session) -> None:  # type: ignore[no-untyped-def]
    events = _build_slice(api)
    events.registrations.replace_all([{"registration_id": "r1", "event_id": "e1", "checked_in": False}])
    session.respond(
        "POST",
        "/events/registrations/r1/check-in",
        {"success": True, "registration": {"registration_id": "r1", "event_id": "e1", "checked_in": True}},
    )

    result = events.check_in("r1")

    assert result.ok
    assert events.registrations.find("r1")["checked_in"] is True
    assert events.selected_event["attended_count"] == 1


def test_unsuccessful_check_in_changes_nothing(api, session) -> None:  # type: ignore[no-untyped-def]
    events = _build_slice(api)
    events.registrations.replace_all([{"registration_id": "r1", "event_id": "e1", "checked_in": False}])
    session.respond(
        "POST",
        "/events/registrations/r1/check-in",
        {"success": False, "message": "Already checked in"},
    )

    events.check_in("r1")

    assert events.registrations.find("r1")["checked_in"] is False
    assert events.selected_event["attended_count"] == 0


def test_fetch_events_reads_pagination(api, session) -> None:  # type: ignore[no-untyped-def]
    events = EventsSlice(api, page_size=10)
    session.respond(
        "GET",
        "/events",
        {"data": [{"event_id": "e1"}], "pagination": {"total": 11, "page": 2, "limit": 10, "total_pages": 2}},
    )

    events.fetch_events(page=2, event_type="fundraiser")

    assert events.events.pagination.page == 2
    assert session.last("GET", "/events")["params"] == {"event_type": "fundraiser", "page": 2, "limit": 10}


def test_contact_registrations_and_clear(api, session) -> None:  # type: ignore[no-untyped-def]
    events = EventsSlice(api)
    session.respond("GET", "/events/registrations", [{"registration_id": "r1"}, {"registration_id": "r2"}])

    events.fetch_contact_registrations("c1")
    assert session.last("GET", "/events/registrations")["params"] == {"contact_id": "c1"}
    assert events.registrations.keys() == ["r1", "r2"]

    events.clear_registrations()
    assert len(events.registrations) == 0


def test_delete_event_clears_selection(api, session) -> None:  # type: ignore[no-untyped-def]
    events = _build_slice(api)
    session.respond("DELETE", "/events/e1", None, status=204)

    events.delete_event("e1")

    assert events.selected_event is None
    assert len(events.events) == 0


def test_register_with_unknown_status_is_rejected(api, session) -> None:  # type: ignore[no-untyped-def]
    events = _build_slice(api)

    result = events.register_contact("e1", "c1", registration_status="maybe")

    assert not result.ok
    assert events.error == "Unknown registration status: maybe"
    assert events.selected_event["registered_count"] == 5
    assert session.calls == []
