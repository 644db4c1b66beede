"""Tests for the asynchronous HTTP client."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from httpunwrap.client import AsyncHttpClient
from httpunwrap.client.base import XML_CONTENT_TYPE
from httpunwrap.exceptions import ClientError, ConnectionError_, ServerError
from httpunwrap.models import ClientConfig, PayloadFormat
from httpunwrap.output import OutputManager, set_output


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_client(handler, **config) -> AsyncHttpClient:
    config.setdefault("base_url", "https://api.example.com")
    return AsyncHttpClient(ClientConfig(**config), transport=httpx.MockTransport(handler))


def _run(coro):
    return asyncio.run(coro)


@pytest.fixture(autouse=True)
def _clean_output():
    set_output(OutputManager(no_color=True, quiet=True))
    yield


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    delays: list[float] = []

    async def fake_sleep(delay: float) -> None:
        delays.append(delay)

    monkeypatch.setattr("httpunwrap.client.async_client.asyncio.sleep", fake_sleep)
    return delays


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestAsyncLifecycle:
    def test_context_manager(self) -> None:
        async def scenario() -> None:
            client = AsyncHttpClient()
            async with client:
                assert client._client is not None
            assert client._client is None

        _run(scenario())

    def test_injected_client_is_not_closed(self) -> None:
        async def scenario() -> bool:
            http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
            async with AsyncHttpClient().set_http_client(http):
                pass
            closed = http.is_closed
            await http.aclose()
            return closed

        assert _run(scenario()) is False


class TestAsyncVerbs:
    def test_get_decodes_xml(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["id"] == "7"
            return httpx.Response(200, content=b"<xml><code>0</code><msg>ok</msg></xml>")

        async def scenario():
            async with _make_client(handler) as client:
                return await client.get("/status", {"id": "7"})

        payload = _run(scenario())
        assert payload.format == PayloadFormat.XML
        assert payload.data == {"code": "0", "msg": "ok"}

    def test_post_form(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.content == b"a=1"
            return httpx.Response(200, json={"ok": True})

        async def scenario():
            async with _make_client(handler) as client:
                return await client.post("/form", {"a": "1"})

        assert _run(scenario()).data == {"ok": True}

    def test_post_json(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["content-type"] == "application/json"
            return httpx.Response(200, content=b"x=1")

        async def scenario():
            async with _make_client(handler) as client:
                return await client.post_json("/j", {"a": 1})

        assert _run(scenario()).data == {"x": "1"}

    def test_post_xml(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["content-type"] == XML_CONTENT_TYPE
            assert b"<xml><item>a</item><item>b</item></xml>" in request.content
            return httpx.Response(200)

        async def scenario():
            async with _make_client(handler) as client:
                return await client.post_xml("/x", ["a", "b"])

        assert _run(scenario()).format is None


class TestAsyncErrors:
    def test_client_error(self) -> None:
        async def scenario():
            async with _make_client(lambda r: httpx.Response(401, json={"error": "expired"})) as client:
                await client.get("/x")

        with pytest.raises(ClientError, match="HTTP 401: expired"):
            _run(scenario())

    def test_server_error_retried(self, sleeps: list[float]) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500)

        async def scenario():
            async with _make_client(handler, max_retries=2) as client:
                await client.get("/x")

        with pytest.raises(ServerError):
            _run(scenario())
        assert len(calls) == 3
        assert sleeps == [1, 2]

    def test_connection_error(self, sleeps: list[float]) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async def scenario():
            async with _make_client(handler, max_retries=1) as client:
                await client.get("/x")

        with pytest.raises(ConnectionError_, match="after 2 attempts"):
            _run(scenario())
        assert sleeps == [1]
