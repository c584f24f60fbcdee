from __future__ import annotations

from crm_console.sequencing import RequestSequencer
from crm_console.slices.contacts import ContactsSlice

from conftest import FakeResponse


def test_only_newest_ticket_is_current() -> None:
    sequencer = RequestSequencer()
    first = sequencer.issue(("contact", "c1"))
    second = sequencer.issue(("contact", "c1"))
    other = sequencer.issue(("contact", "c2"))

    assert not sequencer.is_current(("contact", "c1"), first)
    assert sequencer.is_current(("contact", "c1"), second)
    assert sequencer.is_current(("contact", "c2"), other)


def test_stale_detail_response_is_discarded(api, session) -> None:  # type: ignore[no-untyped-def]
    contacts = ContactsSlice(api)
    newer_results = []

    def slow_first_response() -> FakeResponse:
        # A second fetch for the same contact is issued and answered first.
        newer_results.append(contacts.fetch_contact("c1"))
        return FakeResponse(200, {"success": True, "data": {"contact_id": "c1", "first_name": "Stale"}})

    session.on("GET", "/contacts/c1", slow_first_response)
    session.respond("GET", "/contacts/c1", {"success": True, "data": {"contact_id": "c1", "first_name": "Fresh"}})

    result = contacts.fetch_contact("c1")

    assert result.ok and result.stale
    assert newer_results[0].ok and not newer_results[0].stale
    assert contacts.current_contact == {"contact_id": "c1", "first_name": "Fresh"}
    assert contacts.loading is False


def test_stale_failure_does_not_store_error(api, session) -> None:  # type: ignore[no-untyped-def]
    contacts = ContactsSlice(api)

    def failing_first_response() -> FakeResponse:
        contacts.fetch_contact("c1")
        return FakeResponse(500, {"error": "boom"})

    session.on("GET", "/contacts/c1", failing_first_response)
    session.respond("GET", "/contacts/c1", {"contact_id": "c1"})

    result = contacts.fetch_contact("c1")

    assert not result.ok and result.stale
    assert contacts.error is None
    assert contacts.current_contact == {"contact_id": "c1"}
