"""Shared lifecycle for slices: loading flags, stored errors, and thunks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Hashable, TypeVar

from .api import ApiClient
from .collection import KeyedCollection, Record
from .envelope import unwrap_list, unwrap_page, unwrap_record
from .errors import CRMError, ValidationError, error_message
from .logger import get_logger
from .sequencing import RequestSequencer


logger = get_logger(__name__)

P = TypeVar("P")


@dataclass(frozen=True)
class ThunkResult(Generic[P]):
    """Outcome of one slice operation.

    ``stale`` marks a response that arrived after a newer request for the same
    entity was issued; its result was not applied to the slice.
    """

    ok: bool
    payload: P | None = None
    error: CRMError | None = None
    message: str | None = None
    stale: bool = False

    def __bool__(self) -> bool:
        return self.ok


class Slice:
    """A named partition of console state mutated only through its thunks."""

    name = "slice"

    def __init__(self, api: ApiClient, sequencer: RequestSequencer | None = None) -> None:
        self.api = api
        self.sequencer = sequencer or RequestSequencer()
        self.loading = False
        self.error: str | None = None
        self.last_error: CRMError | None = None

    def clear_error(self) -> None:
        self.error = None
        self.last_error = None

    def _set_flag(self, flag: str, value: bool) -> None:
        if flag:
            setattr(self, flag, value)

    def _store_error(self, exc: CRMError, message: str, error_attr: str) -> None:
        setattr(self, error_attr, message)
        if error_attr == "error":
            self.last_error = exc

    def _reject(
        self,
        action: str,
        message: str,
        fields: dict[str, str] | None = None,
        error_attr: str = "error",
    ) -> ThunkResult[Any]:
        """Fail an operation before any request is sent."""

        exc = ValidationError(message, fields=fields)
        if error_attr:
            self._store_error(exc, message, error_attr)
        logger.warning("%s/%s rejected: %s", self.name, action, message)
        return ThunkResult(ok=False, error=exc, message=message)

    def _thunk(
        self,
        action: str,
        request: Callable[[], Any],
        fulfilled: Callable[[Any], Any] | None = None,
        fallback: str = "Request failed",
        flag: str = "loading",
        entity: Hashable | None = None,
        error_attr: str = "error",
        rejected: Callable[[CRMError, str], None] | None = None,
    ) -> ThunkResult[Any]:
        """Run one network call and apply its outcome to the slice.

        Pending clears the stored error and raises ``flag``. On success
        ``fulfilled`` receives the response and its return value becomes the
        payload. On failure the message is stored in ``error_attr``. With
        ``entity`` set, the outcome is dropped if a newer request for the same
        entity was issued meanwhile.
        """

        ticket = self.sequencer.issue(entity) if entity is not None else None
        self._set_flag(flag, True)
        if error_attr:
            setattr(self, error_attr, None)
            if error_attr == "error":
                self.last_error = None
        logger.debug("%s/%s pending", self.name, action)

        try:
            response = request()
        except CRMError as exc:
            message = error_message(exc, fallback)
            if ticket is not None and not self.sequencer.is_current(entity, ticket):
                logger.info("%s/%s discarded stale failure for %s", self.name, action, entity)
                return ThunkResult(ok=False, error=exc, message=message, stale=True)
            self._set_flag(flag, False)
            if rejected is not None:
                rejected(exc, message)
            elif error_attr:
                self._store_error(exc, message, error_attr)
            logger.warning("%s/%s rejected: %s", self.name, action, message)
            return ThunkResult(ok=False, error=exc, message=message)

        if ticket is not None and not self.sequencer.is_current(entity, ticket):
            logger.info("%s/%s discarded stale response for %s", self.name, action, entity)
            return ThunkResult(ok=True, payload=response, stale=True)

        self._set_flag(flag, False)
        payload = fulfilled(response) if fulfilled is not None else response
        logger.debug("%s/%s fulfilled", self.name, action)
        return ThunkResult(ok=True, payload=payload)


def insert_record(collection: KeyedCollection[Record]) -> Callable[[Any], Record | None]:
    def fulfilled(response: Any) -> Record | None:
        record = unwrap_record(response)
        if record is not None:
            collection.insert(record)
        return record

    return fulfilled


def replace_record(
    collection: KeyedCollection[Record],
    merge: bool = False,
) -> Callable[[Any], Record | None]:
    def fulfilled(response: Any) -> Record | None:
        record = unwrap_record(response)
        if record is not None:
            collection.replace(record, merge=merge)
        return record

    return fulfilled


def select_record(collection: KeyedCollection[Record]) -> Callable[[Any], Record | None]:
    def fulfilled(response: Any) -> Record | None:
        record = unwrap_record(response)
        if record is not None:
            collection.select(record)
            collection.replace(record)
        return record

    return fulfilled


def remove_key(collection: KeyedCollection[Record], key: Any) -> Callable[[Any], Any]:
    def fulfilled(_: Any) -> Any:
        collection.remove(key)
        return key

    return fulfilled


def replace_list(
    collection: KeyedCollection[Record],
    key: str | None = None,
) -> Callable[[Any], list[Record]]:
    def fulfilled(response: Any) -> list[Record]:
        items = unwrap_list(response, key)
        collection.replace_all(items)
        return items

    return fulfilled


def replace_page(
    collection: KeyedCollection[Record],
    key: str = "data",
    default_limit: int = 20,
) -> Callable[[Any], list[Record]]:
    def fulfilled(response: Any) -> list[Record]:
        page = unwrap_page(response, key=key, default_limit=default_limit)
        collection.replace_all(page.items, page.pagination)
        return page.items

    return fulfilled
