"""Email and SMS provider settings panels.

Reads go through a short-TTL cache so reopening a panel does not refetch.
Saves write through to the server and then refresh the cached copy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..api import ApiClient
from ..cache import TTLCache
from ..envelope import unwrap, unwrap_record
from ..logger import get_logger
from ..slice import Slice, ThunkResult


logger = get_logger(__name__)


@dataclass(frozen=True)
class Provider:
    key: str
    label: str
    path: str
    secret_fields: tuple[str, ...]


PROVIDERS: dict[str, Provider] = {
    "email": Provider("email", "email", "/admin/email-settings", ("smtpPass", "imapPass")),
    "sms": Provider("sms", "Twilio", "/admin/twilio-settings", ("authToken",)),
}


def _panel(response: Any) -> dict[str, Any]:
    """Split ``{data: settings, credentials}`` into one cacheable value."""

    settings = unwrap_record(response) or {}
    credentials = response.get("credentials") if isinstance(response, dict) else None
    return {"settings": settings, "credentials": credentials or {}}


class ProviderSettingsSlice(Slice):
    name = "provider_settings"

    def __init__(self, api: ApiClient, cache_ttl: float = 300.0, cache: TTLCache | None = None) -> None:
        super().__init__(api)
        self.cache = cache or TTLCache(cache_ttl)
        self.panels: dict[str, dict[str, Any]] = {}
        self.test_results: dict[str, dict[str, Any]] = {}
        self.saving = False
        self.testing = False

    def _unknown(self, action: str, provider: str) -> ThunkResult[Any]:
        return self._reject(action, f"Unknown settings provider: {provider}")

    def settings_for(self, provider: str) -> dict[str, Any]:
        return self.panels.get(provider, {}).get("settings", {})

    def credentials_for(self, provider: str) -> dict[str, Any]:
        return self.panels.get(provider, {}).get("credentials", {})

    def invalidate(self, provider: str | None = None) -> None:
        self.cache.invalidate(provider)

    def fetch(self, provider: str, force: bool = False) -> ThunkResult[Any]:
        target = PROVIDERS.get(provider)
        if target is None:
            return self._unknown("fetch", provider)
        if not force:
            cached = self.cache.get(provider)
            if cached is not None:
                logger.debug("%s settings served from cache", target.label)
                self.panels[provider] = cached
                return ThunkResult(ok=True, payload=cached)

        def fulfilled(response: Any) -> dict[str, Any]:
            panel = _panel(response)
            self.panels[provider] = panel
            self.cache.set(provider, panel)
            return panel

        return self._thunk(
            f"fetch_{provider}",
            lambda: self.api.get(target.path),
            fulfilled,
            fallback=f"Failed to load {target.label} settings",
            entity=("settings", provider),
        )

    def save(self, provider: str, data: dict[str, Any]) -> ThunkResult[Any]:
        """Write settings; secret fields left blank keep their stored value."""

        target = PROVIDERS.get(provider)
        if target is None:
            return self._unknown("save", provider)
        body = {
            name: value
            for name, value in data.items()
            if name not in target.secret_fields or value
        }

        def fulfilled(_: Any) -> dict[str, Any]:
            self.cache.invalidate(provider)
            return body

        result = self._thunk(
            f"save_{provider}",
            lambda: self.api.put(target.path, json=body),
            fulfilled,
            fallback=f"Failed to save {target.label} settings",
            flag="saving",
            entity=("settings", provider),
        )
        if not result.ok or result.stale:
            return result
        refresh = self.fetch(provider, force=True)
        if not refresh.ok and not refresh.stale:
            # The write went through; the stored error describes the failed reload.
            return ThunkResult(ok=False, payload=body, error=refresh.error, message=refresh.message)
        return result

    def save_email(self, data: dict[str, Any]) -> ThunkResult[Any]:
        return self.save("email", data)

    def save_sms(self, data: dict[str, Any]) -> ThunkResult[Any]:
        return self.save("sms", data)

    def test_connection(self, provider: str) -> ThunkResult[Any]:
        target = PROVIDERS.get(provider)
        if target is None:
            return self._unknown("test_connection", provider)

        def fulfilled(response: Any) -> dict[str, Any]:
            outcome = unwrap(response)
            if not isinstance(outcome, dict):
                outcome = {"success": False, "error": "Unknown error"}
            self.test_results[provider] = outcome
            self.cache.invalidate(provider)
            return outcome

        return self._thunk(
            f"test_{provider}",
            lambda: self.api.post(f"{target.path}/test"),
            fulfilled,
            fallback=f"Failed to test {target.label} connection",
            flag="testing",
        )
