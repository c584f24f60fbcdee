from __future__ import annotations

import json as jsonlib
from collections import defaultdict, deque
from typing import Any, Callable

import pytest

from crm_console.api import ApiClient


BASE_URL = "http://crm.test/api"


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, text: str | None = None) -> None:
        self.status_code = status_code
        if text is not None:
            self.content = text.encode()
        elif body is None:
            self.content = b""
        else:
            self.content = jsonlib.dumps(body).encode()

    @property
    def text(self) -> str:
        return self.content.decode()

    def json(self) -> Any:
        return jsonlib.loads(self.content)


class FakeSession:
    """Scripted stand-in for ``requests.Session``.

    Each route holds a queue of outcomes; the last one repeats. An outcome is
    a ``FakeResponse``, an exception to raise, or a callable returning either.
    """

    def __init__(self) -> None:
        self.headers: dict[str, str] = {}
        self.calls: list[dict[str, Any]] = []
        self._routes: dict[tuple[str, str], deque] = defaultdict(deque)

    def respond(self, method: str, path: str, body: Any = None, status: int = 200) -> None:
        self._routes[(method.upper(), path)].append(FakeResponse(status, body))

    def fail(self, method: str, path: str, exc: BaseException) -> None:
        self._routes[(method.upper(), path)].append(exc)

    def on(self, method: str, path: str, handler: Callable[[], Any]) -> None:
        self._routes[(method.upper(), path)].append(handler)

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        path = url[len(BASE_URL):]
        self.calls.append({"method": method, "path": path, **kwargs})
        queue = self._routes.get((method, path))
        if not queue:
            raise AssertionError(f"Unexpected request: {method} {path}")
        outcome = queue.popleft() if len(queue) > 1 else queue[0]
        if callable(outcome) and not isinstance(outcome, FakeResponse):
            outcome = outcome()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def last(self, method: str | None = None, path: str | None = None) -> dict[str, Any]:
        for call in reversed(self.calls):
            if (method is None or call["method"] == method) and (path is None or call["path"] == path):
                return call
        raise AssertionError(f"No request matched {method} {path}")


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def api(session: FakeSession) -> ApiClient:
    return ApiClient(BASE_URL, token="test-token", timeout=5, session=session)  # type: ignore[arg-type]
