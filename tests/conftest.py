from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest
from prometheus_client import CollectorRegistry

from xer.events import EventStream
from xer.metrics import Instrumentation
from xer.models import CollectionSet

class FailingCloseStream(httpx.SyncByteStream):
    """Body stream that delivers its content and then fails to close."""

    def __init__(self, body: bytes) -> None:
        self.body = body
        self.close_calls = 0

    def __iter__(self):
        yield self.body

    def close(self) -> None:
        self.close_calls += 1
        raise httpx.StreamError("connection reset while closing")


Route = httpx.Response | Exception | Callable[[httpx.Request], httpx.Response]


class FakeHTTP:
    """Routes requests by (method, url) to canned responses and records them."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Route] = {}
        self.requests: list[httpx.Request] = []

    def route(self, method: str, url: str, result: Route) -> None:
        self.routes[(method.upper(), url)] = result

    def requests_to(self, url: str) -> list[httpx.Request]:
        return [request for request in self.requests if str(request.url) == url]

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        result = self.routes.get((request.method, str(request.url)))
        if result is None:
            return httpx.Response(404, text="not found")
        if isinstance(result, Exception):
            raise result
        if callable(result):
            return result(request)
        return result

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)


@pytest.fixture()
def fake_http() -> FakeHTTP:
    return FakeHTTP()


@pytest.fixture()
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture()
def streams() -> tuple[EventStream[str], EventStream[Exception]]:
    return EventStream(capacity=1000), EventStream(capacity=1000)


def make_set(name: str = "svc-a", **overrides: Any) -> CollectionSet:
    raw: dict[str, Any] = {
        "name": name,
        "frequency": 5,
        "endpoints": [{"name": "temp", "url": "http://svc/temp", "type": "number"}],
        "dest": {"url": "http://sink/x", "method": "POST"},
    }
    raw.update(overrides)
    return CollectionSet.model_validate(raw)


@pytest.fixture()
def set_factory() -> Callable[..., CollectionSet]:
    return make_set


@pytest.fixture()
def instrumentation_factory(registry: CollectorRegistry) -> Callable[[list[CollectionSet]], Instrumentation]:
    def _build(sets: list[CollectionSet]) -> Instrumentation:
        return Instrumentation.register(sets, registry=registry)

    return _build


@pytest.fixture()
def drain() -> Callable[[EventStream[Any]], list[Any]]:
    def _drain(stream: EventStream[Any]) -> list[Any]:
        items: list[Any] = []
        while len(stream):
            items.append(stream.get(timeout=0))
        return items

    return _drain


@pytest.fixture()
def failing_close_stream() -> type[FailingCloseStream]:
    return FailingCloseStream
