"""Normalization of CRM API response shapes."""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator


DEFAULT_PAGE_LIMIT = 20

_PAGINATION_FIELDS = ("total", "page", "limit", "total_pages")


class Pagination(BaseModel):
    """Page position of a list response.

    Values the server sends that are missing or do not validate fall back to
    the defaults passed in the validation context, then to the field default.
    """

    model_config = ConfigDict(frozen=True)

    total: int = Field(default=0, ge=0)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_LIMIT, ge=1)
    total_pages: int = Field(default=0, ge=0)

    @field_validator(*_PAGINATION_FIELDS, mode="wrap")
    @classmethod
    def _fall_back_on_bad_value(cls, value: Any, handler, info: ValidationInfo) -> int:
        defaults = (info.context or {}).get("defaults", {})
        fallback = defaults.get(info.field_name, cls.model_fields[info.field_name].default)
        if value is None or isinstance(value, bool):
            return fallback
        try:
            return handler(value)
        except ValidationError:
            return fallback

    @classmethod
    def from_payload(
        cls,
        payload: Any,
        item_count: int = 0,
        default_limit: int = DEFAULT_PAGE_LIMIT,
    ) -> "Pagination":
        if not isinstance(payload, dict):
            payload = {}

        defaults = {"total": item_count, "page": 1, "limit": max(default_limit, 1)}
        raw = {name: payload.get(name) for name in ("total", "page", "limit")}
        position = cls.model_validate(raw, context={"defaults": defaults})

        computed_pages = math.ceil(position.total / position.limit) if position.total else 0
        raw["total_pages"] = payload.get("total_pages", payload.get("pages"))
        return cls.model_validate(
            raw,
            context={"defaults": {**defaults, "total_pages": computed_pages}},
        )

    def as_dict(self) -> dict[str, int]:
        return self.model_dump()


class ListPage(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: list[Any] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


def unwrap(value: Any, key: str | None = None) -> Any:
    """Return the payload inside ``{success, data}`` or ``{key: [...]}`` wrappers.

    Anything that matches neither shape, already-unwrapped payloads included,
    comes back unchanged.
    """

    if isinstance(value, dict):
        if "success" in value and "data" in value:
            return value["data"]
        if key is not None and isinstance(value.get(key), list):
            return value[key]
    return value


def unwrap_list(value: Any, key: str | None = None) -> list[Any]:
    unwrapped = unwrap(value, key)
    if isinstance(unwrapped, list):
        return unwrapped
    # An envelope around a keyed wrapper, e.g. {success, data: {notes: [...]}}.
    if key is not None and isinstance(unwrapped, dict):
        nested = unwrap(unwrapped, key)
        if isinstance(nested, list):
            return nested
    return []


def unwrap_record(value: Any) -> dict[str, Any] | None:
    unwrapped = unwrap(value)
    if isinstance(unwrapped, dict):
        return unwrapped
    return None


def unwrap_page(
    value: Any,
    key: str = "data",
    default_limit: int = DEFAULT_PAGE_LIMIT,
) -> ListPage:
    body = value
    if isinstance(body, dict) and "success" in body and isinstance(body.get("data"), dict):
        body = body["data"]

    if isinstance(body, list):
        items = body
        pagination_payload = None
    elif isinstance(body, dict):
        items = unwrap_list(body, key)
        if not items and key != "items":
            items = unwrap_list(body, "items")
        pagination_payload = body.get("pagination")
        if pagination_payload is None and "total" in body:
            pagination_payload = {
                name: body[name]
                for name in ("total", "page", "limit", "total_pages", "pages")
                if name in body
            }
    else:
        items = []
        pagination_payload = None

    return ListPage(
        items=list(items),
        pagination=Pagination.from_payload(
            pagination_payload,
            item_count=len(items),
            default_limit=default_limit,
        ),
    )
