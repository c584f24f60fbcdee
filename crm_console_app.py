"""Streamlit admin console for the nonprofit CRM API."""

from __future__ import annotations

from typing import Any, Iterable

import pandas as pd
import streamlit as st

from crm_console import (
    CRMStore,
    ThunkResult,
    account_display_name,
    contact_display_name,
    format_currency,
    format_date,
    get_settings,
    yes_no,
)
from crm_console.logger import setup_logging
from crm_console.slices.cases import PRIORITIES


CONTACT_ROLES = ["", "staff", "volunteer", "board"]
REGISTRATION_STATUSES = ["registered", "waitlisted", "confirmed"]
EMAIL_FIELDS = [
    ("smtpHost", "SMTP host"),
    ("smtpPort", "SMTP port"),
    ("smtpUser", "SMTP user"),
    ("smtpFromAddress", "From address"),
    ("smtpFromName", "From name"),
    ("imapHost", "IMAP host"),
    ("imapPort", "IMAP port"),
    ("imapUser", "IMAP user"),
]
SMS_FIELDS = [
    ("accountSid", "Account SID"),
    ("messagingServiceSid", "Messaging service SID"),
    ("fromPhoneNumber", "From phone number"),
]


def _store() -> CRMStore:
    if "crm_store" not in st.session_state:
        st.session_state.crm_store = CRMStore.from_settings()
    return st.session_state.crm_store


def _inject_styles() -> None:
    st.markdown(
        """
        <style>
          :root {
            --crm-ink: #1b2430;
            --crm-teal-700: #0f4c5c;
            --crm-teal-500: #1f7a8c;
            --crm-sand: #f6f4ef;
            --crm-card: #ffffff;
            --crm-border: #d8d4cc;
          }

          .stApp {
            background: linear-gradient(175deg, var(--crm-sand) 0%, #eef3f4 60%, #fafcfc 100%);
            color: var(--crm-ink);
          }

          .block-container {
            padding-top: 1rem;
            padding-bottom: 1.6rem;
          }

          .crm-hero {
            background: linear-gradient(120deg, var(--crm-teal-700), var(--crm-teal-500));
            border-radius: 16px;
            padding: 1.1rem 1.2rem;
            margin-bottom: 1rem;
            box-shadow: 0 14px 28px rgba(15, 76, 92, 0.25);
          }

          .crm-hero h1,
          .crm-hero p {
            color: #ffffff !important;
            margin: 0;
          }

          .crm-hero p {
            margin-top: 0.45rem;
            opacity: 0.92;
          }

          .metric-card {
            border-radius: 12px;
            border: 1px solid var(--crm-border);
            background: var(--crm-card);
            padding: 0.7rem 0.8rem;
            min-height: 100px;
          }

          .metric-label {
            margin: 0;
            font-weight: 600;
            font-size: 0.84rem;
          }

          .metric-value {
            margin: 0.3rem 0 0;
            color: var(--crm-teal-700);
            font-size: 1.4rem;
          }

          .metric-sub {
            margin: 0.35rem 0 0;
            font-size: 0.8rem;
          }

          .section-note {
            color: #55524d;
            margin-top: -0.2rem;
            margin-bottom: 0.8rem;
          }
        </style>
        """,
        unsafe_allow_html=True,
    )


def _hero(api_url: str) -> None:
    st.markdown(
        f"""
        <div class="crm-hero">
          <h1>Nonprofit CRM Console</h1>
          <p>Contacts, events, cases, donations, outcomes, and integrations served by {api_url}.</p>
        </div>
        """,
        unsafe_allow_html=True,
    )


def _render_metric_card(title: str, value: str, subtitle: str) -> None:
    st.markdown(
        f"""
        <div class="metric-card">
          <p class="metric-label">{title}</p>
          <p class="metric-value">{value}</p>
          <p class="metric-sub">{subtitle}</p>
        </div>
        """,
        unsafe_allow_html=True,
    )


def _table_or_info(frame: pd.DataFrame, empty_message: str) -> None:
    if frame.empty:
        st.info(empty_message)
        return
    st.dataframe(frame, use_container_width=True, hide_index=True)


def _report(result: ThunkResult[Any], success_message: str | None = None) -> bool:
    if result.stale:
        return False
    if not result.ok:
        st.error(result.message or "Request failed.")
        return False
    if success_message:
        st.success(success_message)
    return True


def _split_tags(raw: str) -> list[str]:
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def _pick(records: Iterable[dict], key: str, label, prompt: str, widget_key: str) -> dict | None:
    by_key = {record.get(key): record for record in records}
    if not by_key:
        return None
    chosen = st.selectbox(
        prompt,
        options=list(by_key.keys()),
        format_func=lambda value: label(by_key[value]),
        key=widget_key,
    )
    return by_key.get(chosen)


def render_contacts_tab(store: CRMStore) -> None:
    contacts = store.contacts
    st.markdown("### Contacts")
    st.markdown(
        "<p class='section-note'>Search people, open a record, and manage phones, emails, and notes.</p>",
        unsafe_allow_html=True,
    )

    filter_cols = st.columns([3, 1, 1])
    with filter_cols[0]:
        search = st.text_input("Search", value=contacts.filters["search"], key="contacts-search")
    with filter_cols[1]:
        role = st.selectbox("Role", CONTACT_ROLES, key="contacts-role")
    with filter_cols[2]:
        st.write("")
        if st.button("Search", key="contacts-search-button", use_container_width=True):
            if contacts.set_filters(search=search, role=role):
                _report(contacts.fetch_contacts())
            else:
                st.error(contacts.error)

    pagination = contacts.contacts.pagination
    metric_cols = st.columns(3)
    with metric_cols[0]:
        _render_metric_card("Contacts", str(pagination.total), "Matching the current filters")
    with metric_cols[1]:
        _render_metric_card("Page", f"{pagination.page} / {max(pagination.total_pages, 1)}", "Server pagination")
    with metric_cols[2]:
        current = contacts.current_contact
        _render_metric_card(
            "Open record",
            contact_display_name(current) if current else "-",
            f"{current.get('note_count') or 0} notes" if current else "Pick a contact below",
        )

    frame = pd.DataFrame(
        [
            {
                "Name": contact_display_name(row),
                "Email": row.get("email") or "-",
                "Phone": row.get("phone") or "-",
                "Account": account_display_name(row) if row.get("account_id") else "-",
                "Active": yes_no(row.get("is_active", True)),
            }
            for row in contacts.contacts
        ]
    )
    _table_or_info(frame, "No contacts loaded. Run a search to fetch contacts.")

    left, right = st.columns([1, 1.3], gap="large")
    with left:
        st.markdown("#### New Contact")
        with st.form("contact-create-form", clear_on_submit=True):
            first_name = st.text_input("First Name *")
            last_name = st.text_input("Last Name *")
            email = st.text_input("Email")
            phone = st.text_input("Phone")
            tags = st.text_input("Tags", placeholder="donor, newsletter")
            if st.form_submit_button("Create Contact", use_container_width=True):
                if not first_name.strip() or not last_name.strip():
                    st.error("First and last name are required.")
                else:
                    _report(
                        contacts.create_contact(
                            {
                                "first_name": first_name.strip(),
                                "last_name": last_name.strip(),
                                "email": email.strip() or None,
                                "phone": phone.strip() or None,
                                "tags": _split_tags(tags),
                            }
                        ),
                        "Contact created.",
                    )

    with right:
        selected = _pick(contacts.contacts, "contact_id", contact_display_name, "Open Contact", "contacts-open")
        if selected is None:
            return
        action_cols = st.columns(2)
        with action_cols[0]:
            if st.button("Load Details", key="contacts-load", use_container_width=True):
                contact_id = selected["contact_id"]
                if _report(contacts.fetch_contact(contact_id)):
                    for kind in ("phones", "emails", "notes"):
                        contacts.fetch_related(kind, contact_id)
        with action_cols[1]:
            if st.button("Delete Contact", key="contacts-delete", use_container_width=True):
                _report(contacts.delete_contact(selected["contact_id"]), "Contact deleted.")

        current = contacts.current_contact
        if current is None:
            return
        st.caption(
            f"Phones: {current.get('phone_count') or 0} | Emails: {current.get('email_count') or 0} | "
            f"Notes: {current.get('note_count') or 0}"
        )
        notes_frame = pd.DataFrame(
            [
                {
                    "Date": format_date(note.get("created_at")),
                    "Type": note.get("note_type") or "-",
                    "Subject": note.get("subject") or "-",
                }
                for note in contacts.notes
            ]
        )
        _table_or_info(notes_frame, "No notes for this contact yet.")
        with st.form("contact-note-form", clear_on_submit=True):
            subject = st.text_input("Subject")
            content = st.text_area("Note", height=90)
            if st.form_submit_button("Add Note", use_container_width=True):
                _report(
                    contacts.create_related(
                        "notes",
                        current["contact_id"],
                        {"note_type": "note", "subject": subject, "content": content},
                    ),
                    "Note added.",
                )


def render_events_tab(store: CRMStore) -> None:
    events = store.events
    st.markdown("### Events")
    if st.button("Refresh Events", key="events-refresh"):
        _report(events.fetch_events())

    frame = pd.DataFrame(
        [
            {
                "Event": row.get("event_name") or row.get("name") or "-",
                "Starts": format_date(row.get("start_date")),
                "Registered": int(row.get("registered_count") or 0),
                "Attended": int(row.get("attended_count") or 0),
                "Capacity": row.get("capacity") or "-",
            }
            for row in events.events
        ]
    )
    _table_or_info(frame, "No events loaded.")

    selected = _pick(
        events.events,
        "event_id",
        lambda row: row.get("event_name") or row.get("name") or str(row.get("event_id")),
        "Open Event",
        "events-open",
    )
    if selected is None:
        return
    event_id = selected["event_id"]
    if st.button("Load Registrations", key="events-load"):
        if _report(events.fetch_event(event_id)):
            events.fetch_event_registrations(event_id)

    current = events.selected_event
    if current is None:
        return
    metric_cols = st.columns(2)
    with metric_cols[0]:
        _render_metric_card("Registered", str(current.get("registered_count") or 0), "Active registrations")
    with metric_cols[1]:
        _render_metric_card("Attended", str(current.get("attended_count") or 0), "Checked in")

    registrations_frame = pd.DataFrame(
        [
            {
                "Registration": row.get("registration_id"),
                "Contact": row.get("contact_name") or row.get("contact_id"),
                "Status": row.get("registration_status") or "-",
                "Checked In": "Yes" if row.get("checked_in") else "No",
            }
            for row in events.registrations
        ]
    )
    _table_or_info(registrations_frame, "No registrations for this event yet.")

    with st.form("event-register-form", clear_on_submit=True):
        contact_id = st.text_input("Contact ID *")
        status = st.selectbox("Status", REGISTRATION_STATUSES)
        if st.form_submit_button("Register Contact", use_container_width=True):
            if not contact_id.strip():
                st.error("Contact ID is required.")
            else:
                _report(
                    events.register_contact(event_id, contact_id.strip(), registration_status=status),
                    "Contact registered.",
                )

    registration = _pick(
        events.registrations,
        "registration_id",
        lambda row: f"{row.get('contact_name') or row.get('contact_id')} ({row.get('registration_status')})",
        "Registration",
        "events-registration",
    )
    if registration is None:
        return
    action_cols = st.columns(2)
    with action_cols[0]:
        if st.button("Check In", key="events-check-in", use_container_width=True):
            _report(events.check_in(registration["registration_id"]), "Attendee checked in.")
    with action_cols[1]:
        if st.button("Cancel Registration", key="events-cancel", use_container_width=True):
            _report(events.cancel_registration(registration["registration_id"]), "Registration cancelled.")


def render_cases_tab(store: CRMStore) -> None:
    cases = store.cases
    st.markdown("### Cases")
    if st.button("Refresh Cases", key="cases-refresh"):
        _report(cases.fetch_cases())

    counts = cases.counts_by_priority()
    metric_cols = st.columns(4)
    with metric_cols[0]:
        _render_metric_card("Total", str(cases.total), "Cases matching filters")
    with metric_cols[1]:
        _render_metric_card("Urgent", str(len(cases.urgent_cases())), "Flagged or urgent priority")
    with metric_cols[2]:
        _render_metric_card("Overdue", str(len(cases.overdue_cases())), "Past due and still open")
    with metric_cols[3]:
        _render_metric_card("Unassigned", str(len(cases.unassigned_cases())), "Open without an owner")

    st.caption(" | ".join(f"{priority.title()}: {counts[priority]}" for priority in PRIORITIES))

    frame = pd.DataFrame(
        [
            {
                "Case": row.get("case_number") or row.get("id"),
                "Title": row.get("title") or "-",
                "Priority": row.get("priority") or "-",
                "Status": row.get("status_name") or row.get("status_type") or "-",
                "Due": format_date(row.get("due_date")),
                "Notes": int(row.get("notes_count") or 0),
            }
            for row in cases.cases
        ]
    )
    _table_or_info(frame, "No cases loaded.")

    selected = _pick(
        cases.cases,
        "id",
        lambda row: f"{row.get('case_number') or row.get('id')} {row.get('title') or ''}".strip(),
        "Open Case",
        "cases-open",
    )
    if selected is None:
        return
    if st.button("Load Case", key="cases-load"):
        if _report(cases.fetch_case(selected["id"])):
            cases.fetch_notes(selected["id"])

    current = cases.current_case
    if current is None:
        return
    notes_frame = pd.DataFrame(
        [
            {
                "Date": format_date(note.get("created_at")),
                "Type": note.get("note_type") or "-",
                "Content": note.get("content") or "-",
            }
            for note in cases.notes
        ]
    )
    _table_or_info(notes_frame, "No notes for this case yet.")
    with st.form("case-note-form", clear_on_submit=True):
        content = st.text_area("Case Note", height=90)
        if st.form_submit_button("Add Note", use_container_width=True):
            if not content.strip():
                st.error("Note content is required.")
            else:
                _report(
                    cases.create_note(current["id"], {"note_type": "note", "content": content.strip()}),
                    "Note added.",
                )


def render_donations_tab(store: CRMStore) -> None:
    donations = store.donations
    st.markdown("### Donations")
    if st.button("Refresh Donations", key="donations-refresh"):
        _report(donations.fetch_donations())

    metric_cols = st.columns(3)
    with metric_cols[0]:
        _render_metric_card("Donations", str(donations.donations.pagination.total), "All pages")
    with metric_cols[1]:
        _render_metric_card("Total Raised", format_currency(donations.total_amount), "Matching filters")
    with metric_cols[2]:
        _render_metric_card("Average Gift", format_currency(donations.average_amount), "Matching filters")

    frame = pd.DataFrame(
        [
            {
                "Date": format_date(row.get("donation_date")),
                "Donor": row.get("donor_name") or contact_display_name(row),
                "Amount": format_currency(row.get("amount")),
                "Method": row.get("payment_method") or "-",
                "Receipt Sent": yes_no(row.get("receipt_sent")),
            }
            for row in donations.donations
        ]
    )
    _table_or_info(frame, "No donations loaded.")

    pending = [row for row in donations.donations if not row.get("receipt_sent")]
    selected = _pick(
        pending,
        "donation_id",
        lambda row: f"{format_date(row.get('donation_date'))} {format_currency(row.get('amount'))}",
        "Receipt Pending",
        "donations-receipt",
    )
    if selected is not None and st.button("Mark Receipt Sent", key="donations-mark-receipt"):
        _report(donations.mark_receipt_sent(selected["donation_id"]), "Receipt recorded.")


def render_outcomes_tab(store: CRMStore) -> None:
    outcomes = store.outcomes
    st.markdown("### Outcome Definitions")
    include_inactive = st.checkbox("Include inactive", value=outcomes.include_inactive, key="outcomes-inactive")
    if st.button("Refresh Outcomes", key="outcomes-refresh"):
        _report(outcomes.fetch_definitions(include_inactive))

    definitions = list(outcomes.definitions)
    frame = pd.DataFrame(
        [
            {
                "Order": row.get("sort_order"),
                "Name": row.get("name"),
                "Key": row.get("key") or "-",
                "Active": yes_no(row.get("is_active")),
            }
            for row in definitions
        ]
    )
    _table_or_info(frame, "No outcome definitions loaded.")

    selected = _pick(definitions, "id", lambda row: row.get("name") or str(row.get("id")), "Outcome", "outcomes-pick")
    if selected is not None:
        action_cols = st.columns(3)
        with action_cols[0]:
            if selected.get("is_active"):
                if st.button("Disable", key="outcomes-disable", use_container_width=True):
                    _report(outcomes.disable_definition(selected["id"]), "Outcome disabled.")
            elif st.button("Enable", key="outcomes-enable", use_container_width=True):
                _report(outcomes.enable_definition(selected["id"]), "Outcome enabled.")
        with action_cols[1]:
            if st.button("Move Up", key="outcomes-up", use_container_width=True):
                ids = [row["id"] for row in definitions]
                index = ids.index(selected["id"])
                if index > 0:
                    ids[index - 1], ids[index] = ids[index], ids[index - 1]
                    _report(outcomes.reorder(ids), "Order saved.")
        with action_cols[2]:
            if st.button("Move Down", key="outcomes-down", use_container_width=True):
                ids = [row["id"] for row in definitions]
                index = ids.index(selected["id"])
                if index < len(ids) - 1:
                    ids[index + 1], ids[index] = ids[index], ids[index + 1]
                    _report(outcomes.reorder(ids), "Order saved.")

    with st.form("outcome-create-form", clear_on_submit=True):
        name = st.text_input("Name *")
        key = st.text_input("Key *")
        description = st.text_area("Description", height=70)
        if st.form_submit_button("Create Outcome", use_container_width=True):
            if not name.strip() or not key.strip():
                st.error("Name and key are required.")
            else:
                _report(
                    outcomes.create_definition(
                        {"name": name.strip(), "key": key.strip(), "description": description or None}
                    ),
                    "Outcome created.",
                )


def render_webhooks_tab(store: CRMStore) -> None:
    webhooks = store.webhooks
    st.markdown("### Webhooks & API Keys")
    refresh_cols = st.columns(2)
    with refresh_cols[0]:
        if st.button("Refresh Endpoints", key="webhooks-refresh", use_container_width=True):
            _report(webhooks.fetch_endpoints())
    with refresh_cols[1]:
        if st.button("Refresh API Keys", key="api-keys-refresh", use_container_width=True):
            _report(webhooks.fetch_api_keys())

    endpoints_frame = pd.DataFrame(
        [
            {
                "URL": row.get("url"),
                "Events": ", ".join(row.get("events") or []),
                "Active": yes_no(row.get("is_active", True)),
            }
            for row in webhooks.endpoints
        ]
    )
    _table_or_info(endpoints_frame, "No webhook endpoints configured.")

    endpoint = _pick(webhooks.endpoints, "id", lambda row: row.get("url") or str(row.get("id")), "Endpoint", "webhooks-pick")
    if endpoint is not None and st.button("Send Test Delivery", key="webhooks-test"):
        webhooks.test_endpoint(endpoint["id"])
    if webhooks.test_result is not None:
        if webhooks.test_result.get("success"):
            st.success("Test delivery succeeded.")
        else:
            st.error(f"Test delivery failed: {webhooks.test_result.get('error') or 'Unknown error'}")

    keys_frame = pd.DataFrame(
        [
            {
                "Name": row.get("name"),
                "Prefix": row.get("key_prefix") or "-",
                "Status": row.get("status") or "-",
                "Last Used": format_date(row.get("last_used_at")),
            }
            for row in webhooks.api_keys
        ]
    )
    _table_or_info(keys_frame, "No API keys issued.")

    with st.form("api-key-create-form", clear_on_submit=True):
        name = st.text_input("Key Name *")
        scopes = st.text_input("Scopes", placeholder="contacts:read, events:read")
        if st.form_submit_button("Create API Key", use_container_width=True):
            if not name.strip():
                st.error("API key name is required.")
            else:
                _report(webhooks.create_api_key(name, _split_tags(scopes)), "API key created.")
    if webhooks.new_api_key:
        st.warning(f"Copy this key now, it is shown once: {webhooks.new_api_key.get('key')}")
        if st.button("Dismiss", key="api-key-dismiss"):
            webhooks.clear_new_api_key()


def _render_provider_panel(store: CRMStore, provider: str, title: str, fields, secret: tuple[str, str]) -> None:
    panel = store.provider_settings
    st.markdown(f"#### {title}")
    if st.button(f"Load {title}", key=f"{provider}-load"):
        _report(panel.fetch(provider))
    current = panel.settings_for(provider)
    with st.form(f"{provider}-settings-form"):
        values = {
            name: st.text_input(label, value=str(current.get(name) or ""), key=f"{provider}-{name}")
            for name, label in fields
        }
        values[secret[0]] = st.text_input(secret[1], type="password", key=f"{provider}-{secret[0]}")
        if st.form_submit_button(f"Save {title}", use_container_width=True):
            _report(panel.save(provider, values), f"{title} saved.")
    if st.button(f"Test {title}", key=f"{provider}-test"):
        if _report(panel.test_connection(provider)):
            outcome = panel.test_results.get(provider) or {}
            if outcome.get("success"):
                st.success("Connection successful.")
            else:
                st.error(f"Connection failed: {outcome.get('error') or 'Unknown error'}")


def render_settings_tab(store: CRMStore) -> None:
    st.markdown("### Provider Settings")
    left, right = st.columns(2, gap="large")
    with left:
        _render_provider_panel(store, "email", "Email Settings", EMAIL_FIELDS, ("smtpPass", "SMTP password"))
    with right:
        _render_provider_panel(store, "sms", "SMS Settings", SMS_FIELDS, ("authToken", "Auth token"))


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    st.set_page_config(
        page_title="Nonprofit CRM Console",
        page_icon=":handshake:",
        layout="wide",
    )
    store = _store()
    _inject_styles()
    _hero(settings.api_url)

    tabs = st.tabs(
        [
            "Contacts",
            "Events",
            "Cases",
            "Donations",
            "Outcomes",
            "Webhooks",
            "Settings",
        ]
    )

    with tabs[0]:
        render_contacts_tab(store)
    with tabs[1]:
        render_events_tab(store)
    with tabs[2]:
        render_cases_tab(store)
    with tabs[3]:
        render_donations_tab(store)
    with tabs[4]:
        render_outcomes_tab(store)
    with tabs[5]:
        render_webhooks_tab(store)
    with tabs[6]:
        render_settings_tab(store)


if __name__ == "__main__":
    main()
