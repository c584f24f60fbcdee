"""Webhook endpoints and API keys."""

from __future__ import annotations

from typing import Any, Iterable

from ..api import ApiClient
from ..collection import KeyedCollection, Record
from ..envelope import unwrap_list, unwrap_record
from ..errors import CRMError
from ..slice import Slice, ThunkResult, insert_record, remove_key, replace_list, replace_record


class WebhooksSlice(Slice):
    name = "webhooks"

    def __init__(self, api: ApiClient) -> None:
        super().__init__(api)
        self.endpoints: KeyedCollection[Record] = KeyedCollection("id")
        self.api_keys: KeyedCollection[Record] = KeyedCollection("id")
        self.deliveries: list[Record] = []
        self.available_events: list[Record] = []
        self.api_key_usage: list[Record] = []
        self.available_scopes: list[Record] = []
        self.new_api_key: Record | None = None
        self.test_result: Record | None = None
        self.is_testing = False

    @property
    def is_loading(self) -> bool:
        return self.loading

    @property
    def selected_endpoint(self) -> Record | None:
        return self.endpoints.selected

    @property
    def selected_api_key(self) -> Record | None:
        return self.api_keys.selected

    def select_endpoint(self, endpoint: Record | None) -> None:
        self.endpoints.select(endpoint)

    def select_api_key(self, api_key: Record | None) -> None:
        self.api_keys.select(api_key)

    def clear_test_result(self) -> None:
        self.test_result = None

    def clear_new_api_key(self) -> None:
        self.new_api_key = None

    # Endpoints

    def fetch_endpoints(self) -> ThunkResult[Any]:
        return self._thunk(
            "fetch_endpoints",
            lambda: self.api.get("/webhooks/endpoints"),
            replace_list(self.endpoints),
            fallback="Failed to fetch webhook endpoints",
        )

    def create_endpoint(self, url: str, events: Iterable[str], description: str | None = None) -> ThunkResult[Any]:
        if not url or not url.strip():
            return self._reject("create_endpoint", "Webhook URL is required.", fields={"url": "Required"})
        subscribed = list(events)
        if not subscribed:
            return self._reject(
                "create_endpoint",
                "Subscribe the endpoint to at least one event.",
                fields={"events": "Select at least one event"},
            )
        body = {"url": url.strip(), "events": subscribed, "description": description}
        return self._thunk(
            "create_endpoint",
            lambda: self.api.post("/webhooks/endpoints", json=body),
            insert_record(self.endpoints),
            fallback="Failed to create webhook endpoint",
        )

    def update_endpoint(self, endpoint_id: str, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "update_endpoint",
            lambda: self.api.put(f"/webhooks/endpoints/{endpoint_id}", json=data),
            replace_record(self.endpoints),
            fallback="Failed to update webhook endpoint",
            flag="",
            entity=("endpoint", endpoint_id),
        )

    def delete_endpoint(self, endpoint_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "delete_endpoint",
            lambda: self.api.delete(f"/webhooks/endpoints/{endpoint_id}"),
            remove_key(self.endpoints, endpoint_id),
            fallback="Failed to delete webhook endpoint",
            flag="",
            entity=("endpoint", endpoint_id),
        )

    def regenerate_secret(self, endpoint_id: str) -> ThunkResult[Any]:
        def fulfilled(response: Any) -> str | None:
            secret = (unwrap_record(response) or {}).get("secret")
            if secret is not None:

                def set_secret(endpoint: Record) -> Record:
                    endpoint["secret"] = secret
                    return endpoint

                self.endpoints.patch(endpoint_id, set_secret)
            return secret

        return self._thunk(
            "regenerate_secret",
            lambda: self.api.post(f"/webhooks/endpoints/{endpoint_id}/regenerate-secret"),
            fulfilled,
            fallback="Failed to regenerate webhook secret",
            flag="",
            entity=("endpoint", endpoint_id),
        )

    def test_endpoint(self, endpoint_id: str) -> ThunkResult[Any]:
        """Send a test delivery; the outcome lands in ``test_result``, not ``error``."""

        self.test_result = None

        def fulfilled(response: Any) -> Record | None:
            self.test_result = unwrap_record(response)
            return self.test_result

        def rejected(_: CRMError, message: str) -> None:
            self.test_result = {"success": False, "error": message}

        return self._thunk(
            "test_endpoint",
            lambda: self.api.post(f"/webhooks/endpoints/{endpoint_id}/test"),
            fulfilled,
            fallback="Failed to test webhook endpoint",
            flag="is_testing",
            error_attr="",
            rejected=rejected,
        )

    def fetch_deliveries(self, endpoint_id: str, limit: int = 50) -> ThunkResult[Any]:
        def fulfilled(response: Any) -> list[Record]:
            self.deliveries = unwrap_list(response)
            return self.deliveries

        return self._thunk(
            "fetch_deliveries",
            lambda: self.api.get(
                f"/webhooks/endpoints/{endpoint_id}/deliveries", params={"limit": limit}
            ),
            fulfilled,
            fallback="Failed to fetch webhook deliveries",
            flag="",
            entity=("deliveries", endpoint_id),
        )

    def fetch_available_events(self) -> ThunkResult[Any]:
        def fulfilled(response: Any) -> list[Record]:
            self.available_events = unwrap_list(response)
            return self.available_events

        return self._thunk(
            "fetch_available_events",
            lambda: self.api.get("/webhooks/events"),
            fulfilled,
            fallback="Failed to fetch webhook events",
            flag="",
        )

    # API keys

    def fetch_api_keys(self) -> ThunkResult[Any]:
        return self._thunk(
            "fetch_api_keys",
            lambda: self.api.get("/webhooks/api-keys"),
            replace_list(self.api_keys),
            fallback="Failed to fetch API keys",
        )

    def create_api_key(self, name: str, scopes: Iterable[str], expires_at: str | None = None) -> ThunkResult[Any]:
        if not name or not name.strip():
            return self._reject("create_api_key", "API key name is required.", fields={"name": "Required"})
        body = {"name": name.strip(), "scopes": list(scopes), "expires_at": expires_at}
        self.new_api_key = None

        def fulfilled(response: Any) -> Record | None:
            created = unwrap_record(response)
            if created is None:
                return None
            self.new_api_key = created
            listed = {field: value for field, value in created.items() if field != "key"}
            self.api_keys.insert(listed)
            return created

        return self._thunk(
            "create_api_key",
            lambda: self.api.post("/webhooks/api-keys", json=body),
            fulfilled,
            fallback="Failed to create API key",
        )

    def update_api_key(self, key_id: str, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "update_api_key",
            lambda: self.api.put(f"/webhooks/api-keys/{key_id}", json=data),
            replace_record(self.api_keys),
            fallback="Failed to update API key",
            flag="",
            entity=("api_key", key_id),
        )

    def revoke_api_key(self, key_id: str) -> ThunkResult[Any]:
        def revoked(api_key: Record) -> Record:
            api_key["status"] = "revoked"
            return api_key

        def fulfilled(_: Any) -> str:
            self.api_keys.patch(key_id, revoked)
            return key_id

        return self._thunk(
            "revoke_api_key",
            lambda: self.api.post(f"/webhooks/api-keys/{key_id}/revoke"),
            fulfilled,
            fallback="Failed to revoke API key",
            flag="",
            entity=("api_key", key_id),
        )

    def delete_api_key(self, key_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "delete_api_key",
            lambda: self.api.delete(f"/webhooks/api-keys/{key_id}"),
            remove_key(self.api_keys, key_id),
            fallback="Failed to delete API key",
            flag="",
            entity=("api_key", key_id),
        )

    def fetch_api_key_usage(self, key_id: str, limit: int = 100) -> ThunkResult[Any]:
        def fulfilled(response: Any) -> list[Record]:
            self.api_key_usage = unwrap_list(response)
            return self.api_key_usage

        return self._thunk(
            "fetch_api_key_usage",
            lambda: self.api.get(f"/webhooks/api-keys/{key_id}/usage", params={"limit": limit}),
            fulfilled,
            fallback="Failed to fetch API key usage",
            flag="",
            entity=("usage", key_id),
        )

    def fetch_available_scopes(self) -> ThunkResult[Any]:
        def fulfilled(response: Any) -> list[Record]:
            self.available_scopes = unwrap_list(response)
            return self.available_scopes

        return self._thunk(
            "fetch_available_scopes",
            lambda: self.api.get("/webhooks/api-keys/scopes"),
            fulfilled,
            fallback="Failed to fetch API scopes",
            flag="",
        )
