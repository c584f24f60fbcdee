from __future__ import annotations

from crm_console.slices.accounts import AccountsSlice
from crm_console.slices.donations import DonationsSlice
from crm_console.slices.volunteers import VolunteersSlice


def test_fetch_accounts_rejects_unknown_type(api, session) -> None:  # type: ignore[no-untyped-def]
    accounts = AccountsSlice(api)

    result = accounts.fetch_accounts(account_type="club")

    assert not result.ok
    assert accounts.error == "Account type must be individual, household, or organization."
    assert accounts.last_error.fields == {"account_type": "Unknown account type"}
    assert accounts.loading is False
    assert session.calls == []


def test_fetch_accounts_drops_empty_params(api, session) -> None:  # type: ignore[no-untyped-def]
    accounts = AccountsSlice(api, page_size=25)
    session.respond(
        "GET",
        "/accounts",
        {"data": [{"account_id": "a1"}], "pagination": {"total": 26, "page": 1, "limit": 25}},
    )

    accounts.fetch_accounts(account_type="household")

    assert session.last("GET", "/accounts")["params"] == {"page": 1, "limit": 25, "account_type": "household"}
    assert accounts.accounts.keys() == ["a1"]
    assert accounts.accounts.pagination.total_pages == 2


def test_account_contacts_cleared_with_selection(api, session) -> None:  # type: ignore[no-untyped-def]
    accounts = AccountsSlice(api)
    session.respond("GET", "/accounts/a1", {"account_id": "a1", "account_name": "Rivera Household"})
    session.respond("GET", "/accounts/a1/contacts", {"contacts": [{"contact_id": "c1"}]})

    accounts.fetch_account("a1")
    accounts.fetch_account_contacts("a1")
    assert accounts.selected_account["account_name"] == "Rivera Household"
    assert accounts.account_contacts == [{"contact_id": "c1"}]

    accounts.clear_selected_account()
    assert accounts.selected_account is None
    assert accounts.account_contacts == []


def test_delete_account_clears_selection(api, session) -> None:  # type: ignore[no-untyped-def]
    accounts = AccountsSlice(api)
    accounts.accounts.replace_all([{"account_id": "a1"}, {"account_id": "a2"}])
    accounts.accounts.select_key("a1")
    session.respond("DELETE", "/accounts/a1", None, status=204)

    accounts.delete_account("a1")

    assert accounts.accounts.keys() == ["a2"]
    assert accounts.selected_account is None


def test_volunteer_filters(api, session) -> None:  # type: ignore[no-untyped-def]
    volunteers = VolunteersSlice(api)
    session.respond("GET", "/volunteers", {"data": [], "pagination": {"total": 0}})

    assert volunteers.set_filters(shoe_size="9") is False
    assert volunteers.error == "Unknown volunteer filters: shoe_size"

    volunteers.set_filters(skills=["driving", "spanish"], availability_status="available")
    volunteers.fetch_volunteers()

    assert session.last("GET", "/volunteers")["params"] == {
        "skills": "driving,spanish",
        "availability_status": "available",
        "is_active": "true",
        "page": 1,
        "limit": 20,
    }

    volunteers.clear_filters()
    assert volunteers.filters["skills"] == []


def test_search_by_skills(api, session) -> None:  # type: ignore[no-untyped-def]
    volunteers = VolunteersSlice(api)
    session.respond("GET", "/volunteers/search/skills", [{"volunteer_id": "v2"}])

    rejected = volunteers.search_by_skills([" ", ""])
    assert not rejected.ok
    assert volunteers.error == "Enter at least one skill to search."
    assert session.calls == []

    volunteers.search_by_skills(["first aid ", "cooking"])

    assert session.last()["params"] == {"skills": "first aid,cooking"}
    assert volunteers.volunteers.keys() == ["v2"]


def test_assignments_follow_current_volunteer(api, session) -> None:  # type: ignore[no-untyped-def]
    volunteers = VolunteersSlice(api)
    session.respond("GET", "/volunteers/v1/assignments", [{"assignment_id": "s1", "status": "scheduled"}])
    session.respond("PUT", "/volunteers/assignments/s1", {"assignment_id": "s1", "status": "completed"})
    session.respond("POST", "/volunteers/assignments", {"assignment_id": "s2", "status": "scheduled"})

    volunteers.fetch_assignments("v1")
    volunteers.update_assignment("s1", {"status": "completed"})
    volunteers.create_assignment({"volunteer_id": "v1"})

    assert volunteers.assignments.items == [
        {"assignment_id": "s2", "status": "scheduled"},
        {"assignment_id": "s1", "status": "completed"},
    ]

    volunteers.clear_current_volunteer()
    assert volunteers.assignments.items == []


def test_fetch_donations_reads_summary(api, session) -> None:  # type: ignore[no-untyped-def]
    donations = DonationsSlice(api)
    session.respond(
        "GET",
        "/donations",
        {
            "data": [{"donation_id": "d1", "amount": "125.50"}],
            "pagination": {"total": 1, "page": 1, "limit": 20},
            "summary": {"total_amount": "125.50", "average_amount": 125.5},
        },
    )

    donations.fetch_donations(payment_method="check")

    assert donations.donations.keys() == ["d1"]
    assert donations.total_amount == 125.5
    assert donations.average_amount == 125.5
    assert session.last("GET", "/donations")["params"]["payment_method"] == "check"


def test_mark_receipt_sent_replaces_donation(api, session) -> None:  # type: ignore[no-untyped-def]
    donations = DonationsSlice(api)
    donations.donations.replace_all([{"donation_id": "d1", "receipt_sent": False}])
    donations.donations.select_key("d1")
    session.respond("POST", "/donations/d1/receipt", {"success": True, "data": {"donation_id": "d1", "receipt_sent": True}})

    result = donations.mark_receipt_sent("d1")

    assert result.ok
    assert donations.donations.find("d1")["receipt_sent"] is True
    assert donations.selected_donation["receipt_sent"] is True


def test_donation_not_found_sets_error(api, session) -> None:  # type: ignore[no-untyped-def]
    donations = DonationsSlice(api)
    session.respond("GET", "/donations/missing", {"error": "Donation not found"}, status=404)

    result = donations.fetch_donation("missing")

    assert not result.ok
    assert result.error.kind == "not_found"
    assert donations.error == "Donation not found"
    assert donations.loading is False
