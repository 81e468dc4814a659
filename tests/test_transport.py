from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from studiolink.core.transport import HttpxTransport, TransportError


def _transport(handler) -> HttpxTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpxTransport("https://api.test/", "secret", client=client)


def test_get_sends_auth_headers_and_run_id_query() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": "running"})

    transport = _transport(handler)
    body = asyncio.run(transport.get("/scrape/run", {"run_id": "r1"}))

    assert body == {"status": "running"}
    request = seen[0]
    assert request.method == "GET"
    assert str(request.url) == "https://api.test/scrape/run?run_id=r1"
    assert request.headers["x-api-key"] == "secret"
    assert request.headers["accept"] == "application/json"
    assert request.headers["content-type"] == "application/json"


def test_post_sends_json_body() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"run_id": "r1"})

    transport = _transport(handler)
    body = asyncio.run(transport.post("/scrape", {"url": "https://a", "render_html": False}))

    assert body == {"run_id": "r1"}
    assert seen[0].method == "POST"
    assert json.loads(seen[0].content) == {"url": "https://a", "render_html": False}


def test_http_error_status_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"detail": "Invalid API key"})

    transport = _transport(handler)
    with pytest.raises(TransportError) as exc_info:
        asyncio.run(transport.get("/scrape/run", {"run_id": "r1"}))

    assert exc_info.value.status_code == 401
    assert "Invalid API key" in str(exc_info.value)
    assert exc_info.value.url == "https://api.test/scrape/run"


def test_network_failure_raises_transport_error_once() -> None:
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    transport = _transport(handler)
    with pytest.raises(TransportError) as exc_info:
        asyncio.run(transport.get("/status"))

    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.cause, httpx.ConnectError)
    assert len(attempts) == 1


def test_non_json_body_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    transport = _transport(handler)
    with pytest.raises(TransportError, match="non-JSON"):
        asyncio.run(transport.get("/scrape/run/data", {"run_id": "r1"}))


def test_check_calls_status_endpoint_and_close_releases_client() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/status"
        return httpx.Response(200, json={"status": "ok"})

    async def _run() -> dict:
        async with _transport(handler) as transport:
            body = await transport.check()
        assert transport._client is None
        return body

    assert asyncio.run(_run()) == {"status": "ok"}
