"""HTTP client for the CRM REST API."""

from __future__ import annotations

from typing import Any, Mapping

import requests

from .config import Settings, get_settings
from .errors import (
    CRMError,
    NetworkError,
    NotFoundError,
    UnknownError,
    ValidationError,
    field_errors_from_payload,
    message_from_payload,
)
from .logger import get_logger


logger = get_logger(__name__)

_VALIDATION_STATUSES = {400, 422}


def clean_params(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Drop empty query values and join list values with commas."""

    if not params:
        return {}

    cleaned: dict[str, Any] = {}
    for name, value in params.items():
        if value is None:
            continue
        if isinstance(value, str):
            if not value.strip():
                continue
            cleaned[name] = value
        elif isinstance(value, bool):
            cleaned[name] = "true" if value else "false"
        elif isinstance(value, (list, tuple, set)):
            parts = [str(part) for part in value if part is not None and str(part).strip()]
            if parts:
                cleaned[name] = ",".join(parts)
        else:
            cleaned[name] = value
    return cleaned


def _decode_body(response: requests.Response) -> Any:
    if response.status_code == 204 or not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class ApiClient:
    """Thin wrapper over ``requests.Session`` that maps failures to CRM errors."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        session: requests.Session | None = None,
    ) -> "ApiClient":
        settings = settings or get_settings()
        return cls(
            base_url=settings.api_url,
            token=settings.api_token,
            timeout=settings.api_timeout,
            session=session,
        )

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        data: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
    ) -> Any:
        url = self.url_for(path)
        method = method.upper()
        logger.debug("%s %s params=%s", method, url, params)

        try:
            response = self.session.request(
                method,
                url,
                params=clean_params(params),
                json=json,
                data=data,
                files=files,
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            logger.warning("%s %s timed out after %ss", method, url, self.timeout)
            raise NetworkError(f"Request timed out: {method} {path}") from exc
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise NetworkError(f"Network error: {exc}") from exc

        body = _decode_body(response)
        if response.status_code >= 400:
            error = self._error_for(response.status_code, body, method, path)
            logger.warning("%s %s -> %s: %s", method, url, response.status_code, error.message)
            raise error
        return body

    def _error_for(self, status: int, body: Any, method: str, path: str) -> CRMError:
        message = message_from_payload(body) or f"{method} {path} failed with status {status}"
        if status in _VALIDATION_STATUSES:
            return ValidationError(
                message,
                fields=field_errors_from_payload(body),
                status=status,
                payload=body,
            )
        if status == 404:
            return NotFoundError(message, status=status, payload=body)
        return UnknownError(message, status=status, payload=body)

    def get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(
        self,
        path: str,
        json: Any = None,
        params: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
    ) -> Any:
        return self.request("POST", path, params=params, json=json, data=data, files=files)

    def put(self, path: str, json: Any = None) -> Any:
        return self.request("PUT", path, json=json)

    def patch(self, path: str, json: Any = None) -> Any:
        return self.request("PATCH", path, json=json)

    def delete(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return self.request("DELETE", path, params=params)
