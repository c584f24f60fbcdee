from __future__ import annotations

import pytest
import requests

from crm_console.api import ApiClient, clean_params
from crm_console.config import Settings
from crm_console.errors import NetworkError, NotFoundError, UnknownError, ValidationError


def test_clean_params_drops_empty_values_and_joins_lists() -> None:
    assert clean_params(
        {
            "search": "  ",
            "role": "",
            "account_id": None,
            "tags": ["donor", "", "board"],
            "skills": [],
            "is_active": False,
            "page": 2,
        }
    ) == {"tags": "donor,board", "is_active": "false", "page": 2}


def test_request_sends_token_and_decodes_json(api, session) -> None:  # type: ignore[no-untyped-def]
    session.respond("GET", "/contacts", {"data": []})

    assert api.get("/contacts", params={"search": "Avery", "role": ""}) == {"data": []}

    call = session.last("GET", "/contacts")
    assert call["params"] == {"search": "Avery"}
    assert call["timeout"] == 5
    assert session.headers["Authorization"] == "Bearer test-token"


def test_empty_body_decodes_to_none(api, session) -> None:  # type: ignore[no-untyped-def]
    session.respond("DELETE", "/contacts/c1", None, status=204)

    assert api.delete("/contacts/c1") is None


def test_validation_status_maps_to_validation_error(api, session) -> None:  # type: ignore[no-untyped-def]
    session.respond(
        "POST",
        "/contacts",
        {"errors": [{"param": "email", "msg": "Invalid email"}]},
        status=400,
    )

    with pytest.raises(ValidationError) as excinfo:
        api.post("/contacts", json={"email": "nope"})

    assert excinfo.value.status == 400
    assert excinfo.value.fields == {"email": "Invalid email"}
    assert str(excinfo.value) == "Invalid email"


def test_status_codes_map_to_error_kinds(api, session) -> None:  # type: ignore[no-untyped-def]
    session.respond("GET", "/contacts/missing", {"error": "Contact not found"}, status=404)
    session.respond("GET", "/contacts/broken", None, status=500)

    with pytest.raises(NotFoundError, match="Contact not found"):
        api.get("/contacts/missing")
    with pytest.raises(UnknownError) as excinfo:
        api.get("/contacts/broken")
    assert excinfo.value.status == 500


def test_transport_failures_become_network_errors(api, session) -> None:  # type: ignore[no-untyped-def]
    session.fail("GET", "/events", requests.Timeout("read timed out"))
    session.fail("GET", "/cases", requests.ConnectionError("refused"))

    with pytest.raises(NetworkError, match="timed out"):
        api.get("/events")
    with pytest.raises(NetworkError, match="refused"):
        api.get("/cases")


def test_from_settings_without_token(session) -> None:  # type: ignore[no-untyped-def]
    client = ApiClient.from_settings(
        Settings(api_url="http://crm.test/api/", api_token=None, api_timeout=3.0),
        session=session,
    )

    assert client.url_for("/contacts") == "http://crm.test/api/contacts"
    assert "Authorization" not in session.headers
