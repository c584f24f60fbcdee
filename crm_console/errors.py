"""Error types raised at the CRM API boundary."""

from __future__ import annotations

from typing import Any


class CRMError(Exception):
    """Base class for failed CRM API operations."""

    kind = "unknown"

    def __init__(
        self,
        message: str,
        status: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload


class NetworkError(CRMError):
    kind = "network"


class ValidationError(CRMError, ValueError):
    """Rejected input; ``fields`` maps parameter names to messages."""

    kind = "validation"

    def __init__(
        self,
        message: str,
        fields: dict[str, str] | None = None,
        status: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message, status=status, payload=payload)
        self.fields = dict(fields or {})


class NotFoundError(CRMError):
    kind = "not_found"


class UnknownError(CRMError):
    kind = "unknown"


def _clean(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _error_entry_text(entry: Any) -> str | None:
    if isinstance(entry, str):
        return _clean(entry)
    if isinstance(entry, dict):
        return _clean(entry.get("msg")) or _clean(entry.get("message"))
    return None


def message_from_payload(payload: Any) -> str | None:
    """Pull a human-readable message out of an API error body."""

    if not isinstance(payload, dict):
        return _clean(payload)

    error = payload.get("error")
    if isinstance(error, dict):
        nested = _clean(error.get("message"))
        if nested:
            return nested
    elif _clean(error):
        return _clean(error)

    message = _clean(payload.get("message"))
    if message:
        return message

    errors = payload.get("errors")
    if isinstance(errors, list):
        texts = [text for text in (_error_entry_text(entry) for entry in errors) if text]
        if texts:
            return "; ".join(texts[:3])

    return None


def field_errors_from_payload(payload: Any) -> dict[str, str]:
    if not isinstance(payload, dict):
        return {}

    entries = payload.get("errors")
    if entries is None and isinstance(payload.get("error"), dict):
        entries = payload["error"].get("details")

    fields: dict[str, str] = {}
    if isinstance(entries, dict):
        for name, value in entries.items():
            text = _error_entry_text(value)
            if text:
                fields[str(name)] = text
        return fields

    if not isinstance(entries, list):
        return fields

    for entry in entries:
        if not isinstance(entry, dict):
            continue
        name = entry.get("param") or entry.get("path") or entry.get("field")
        if isinstance(name, list):
            name = ".".join(str(part) for part in name)
        text = _error_entry_text(entry)
        if name and text and str(name) not in fields:
            fields[str(name)] = text
    return fields


def error_message(exc: BaseException | None, fallback: str) -> str:
    """Message for display: API payload, then exception text, then fallback."""

    if exc is None:
        return fallback

    if isinstance(exc, CRMError):
        from_payload = message_from_payload(exc.payload)
        if from_payload:
            return from_payload

    text = _clean(str(exc))
    return text or fallback
