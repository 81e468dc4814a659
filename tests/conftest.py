from __future__ import annotations

from typing import Any

import pytest

from studiolink.core.transport.base import ApiRequest, Transport


class FakeTransport(Transport):
    """Scripted transport keyed by (method, path).

    Each key holds a list of responses consumed in order; the last one
    repeats. An Exception instance in the list is raised instead.
    """

    def __init__(self, responses: dict[tuple[str, str], list[Any]]):
        self.responses = {key: list(values) for key, values in responses.items()}
        self.calls: list[ApiRequest] = []
        self.closed = False

    @property
    def name(self) -> str:
        return "fake"

    async def send(self, request: ApiRequest) -> Any:
        self.calls.append(request)
        queue = self.responses.get((request.method, request.path))
        if not queue:
            raise AssertionError(f"unexpected call {request.method} {request.path}")
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True

    def calls_to(self, path: str) -> list[ApiRequest]:
        return [call for call in self.calls if call.path == path]


class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _api_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STUDIOLINK_API_KEY", "test-key")
    monkeypatch.delenv("STUDIOLINK_API_URL", raising=False)
