from __future__ import annotations

from crm_console.errors import (
    CRMError,
    NetworkError,
    ValidationError,
    error_message,
    field_errors_from_payload,
    message_from_payload,
)


def test_message_from_payload_order() -> None:
    assert message_from_payload({"error": "Duplicate email", "message": "ignored"}) == "Duplicate email"
    assert message_from_payload({"error": {"message": "Nested"}}) == "Nested"
    assert message_from_payload({"message": "Top level"}) == "Top level"
    assert (
        message_from_payload({"errors": [{"msg": "a"}, {"message": "b"}, {"msg": "c"}, {"msg": "d"}]})
        == "a; b; c"
    )
    assert message_from_payload({"unrelated": True}) is None


def test_field_errors_from_list_and_mapping() -> None:
    assert field_errors_from_payload(
        {"errors": [{"param": "email", "msg": "Invalid email"}, {"path": ["name", "first"], "message": "Required"}]}
    ) == {"email": "Invalid email", "name.first": "Required"}
    assert field_errors_from_payload({"errors": {"phone": "Too short"}}) == {"phone": "Too short"}


def test_error_message_falls_back_in_order() -> None:
    with_payload = CRMError("raw text", payload={"error": "From API"})
    assert error_message(with_payload, "Failed to fetch contacts") == "From API"
    assert error_message(NetworkError("Connection refused"), "Failed to fetch contacts") == "Connection refused"
    assert error_message(CRMError(""), "Failed to fetch contacts") == "Failed to fetch contacts"
    assert error_message(None, "Failed") == "Failed"


def test_validation_error_is_a_value_error() -> None:
    exc = ValidationError("Bad input", fields={"email": "Invalid"}, status=400)

    assert isinstance(exc, ValueError)
    assert exc.kind == "validation"
    assert exc.fields == {"email": "Invalid"}
