from __future__ import annotations

from crm_console.cache import TTLCache
from crm_console.slices.settings import ProviderSettingsSlice


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _build_slice(api, clock: _Clock) -> ProviderSettingsSlice:  # type: ignore[no-untyped-def]
    return ProviderSettingsSlice(api, cache=TTLCache(300, clock=clock))


def _settings_body(settings: dict, credentials: dict | None = None) -> dict:
    return {"success": True, "data": settings, "credentials": credentials or {}}


def test_fetch_reads_through_cache(api, session) -> None:  # type: ignore[no-untyped-def]
    clock = _Clock()
    panel = _build_slice(api, clock)
    session.respond(
        "GET",
        "/admin/email-settings",
        _settings_body({"smtpHost": "smtp.example.org", "smtpPort": 587}, {"smtp": True}),
    )

    panel.fetch("email")
    panel.fetch("email")
    assert len(session.calls) == 1
    assert panel.settings_for("email") == {"smtpHost": "smtp.example.org", "smtpPort": 587}
    assert panel.credentials_for("email") == {"smtp": True}

    clock.now = 301
    panel.fetch("email")
    assert len(session.calls) == 2


def test_invalidate_forces_refetch(api, session) -> None:  # type: ignore[no-untyped-def]
    panel = _build_slice(api, _Clock())
    session.respond("GET", "/admin/twilio-settings", _settings_body({"accountSid": "AC1"}))

    panel.fetch("sms")
    panel.invalidate("sms")
    panel.fetch("sms")

    assert len(session.calls) == 2


def test_save_drops_blank_secrets_and_refreshes(api, session) -> None:  # type: ignore[no-untyped-def]
    panel = _build_slice(api, _Clock())
    session.respond("GET", "/admin/twilio-settings", _settings_body({"accountSid": "AC1"}))
    session.respond("GET", "/admin/twilio-settings", _settings_body({"accountSid": "AC2"}))
    session.respond("PUT", "/admin/twilio-settings", {"success": True})

    panel.fetch("sms")
    result = panel.save_sms({"accountSid": "AC2", "authToken": ""})

    assert result.ok
    assert session.last("PUT", "/admin/twilio-settings")["json"] == {"accountSid": "AC2"}
    assert panel.settings_for("sms") == {"accountSid": "AC2"}
    assert panel.saving is False

    calls_before = len(session.calls)
    panel.fetch("sms")
    assert len(session.calls) == calls_before


def test_save_keeps_typed_secret(api, session) -> None:  # type: ignore[no-untyped-def]
    panel = _build_slice(api, _Clock())
    session.respond("PUT", "/admin/email-settings", None, status=204)
    session.respond("GET", "/admin/email-settings", _settings_body({"smtpHost": "smtp"}))

    panel.save_email({"smtpHost": "smtp", "smtpPass": "hunter2", "imapPass": ""})

    assert session.last("PUT", "/admin/email-settings")["json"] == {"smtpHost": "smtp", "smtpPass": "hunter2"}


def test_failed_save_skips_refresh(api, session) -> None:  # type: ignore[no-untyped-def]
    panel = _build_slice(api, _Clock())
    session.respond("PUT", "/admin/email-settings", {"error": "SMTP host is required"}, status=400)

    result = panel.save_email({"smtpHost": ""})

    assert not result.ok
    assert panel.error == "SMTP host is required"
    assert [call["method"] for call in session.calls] == ["PUT"]


def test_test_connection_records_outcome(api, session) -> None:  # type: ignore[no-untyped-def]
    panel = _build_slice(api, _Clock())
    session.respond(
        "POST",
        "/admin/email-settings/test",
        {"success": True, "data": {"success": False, "error": "Auth failed"}},
    )

    result = panel.test_connection("email")

    assert result.ok
    assert panel.test_results["email"] == {"success": False, "error": "Auth failed"}
    assert panel.testing is False


def test_unknown_provider_is_rejected(api) -> None:  # type: ignore[no-untyped-def]
    panel = _build_slice(api, _Clock())

    for result in (panel.fetch("fax"), panel.save("fax", {}), panel.test_connection("fax")):
        assert not result.ok
        assert result.error.kind == "validation"
    assert panel.error == "Unknown settings provider: fax"


def test_save_reports_failed_reload(api, session) -> None:  # type: ignore[no-untyped-def]
    panel = _build_slice(api, _Clock())
    session.respond("PUT", "/admin/email-settings", {"success": True})
    session.respond("GET", "/admin/email-settings", {"error": "boom"}, status=500)

    result = panel.save_email({"smtpHost": "smtp"})

    assert not result.ok
    assert result.payload == {"smtpHost": "smtp"}
    assert result.message == "boom"
    assert panel.error == "boom"
    assert panel.saving is False
    assert [call["method"] for call in session.calls] == ["PUT", "GET"]
