"""Tests for the explain HTTP client and chunk reader."""

from __future__ import annotations

import json

import httpx
import pytest

from xc.client import EXPLAIN_PATH, ExplainClient
from xc.errors import TransportError

# ── Factories ──────────────────────────────────────────────────────


def _client_for(handler) -> tuple[ExplainClient, httpx.AsyncClient]:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
    return ExplainClient("http://test", http_client=http), http


async def _read_all(client: ExplainClient, code: str = "x", language: str = "text") -> bytes:
    data = b""
    async with client.stream_explain(code, language) as reader:
        async for chunk in reader:
            data += chunk
    return data


# ── Request ────────────────────────────────────────────────────────


class TestRequest:
    @pytest.mark.asyncio
    async def test_posts_code_and_language(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"data: [DONE]\n\n")

        client, http = _client_for(handler)
        async with http:
            await _read_all(client, "print(1)", "python")

        assert seen[0].method == "POST"
        assert seen[0].url.path == EXPLAIN_PATH
        assert json.loads(seen[0].content) == {"code": "print(1)", "language": "python"}

    @pytest.mark.asyncio
    async def test_streams_body_chunks(self):
        async def body():
            yield b"data: one\n"
            yield b""
            yield b"data: two\n"

        client, http = _client_for(lambda request: httpx.Response(200, content=body()))
        async with http:
            assert await _read_all(client) == b"data: one\ndata: two\n"

    @pytest.mark.asyncio
    async def test_reader_exposes_status(self):
        client, http = _client_for(lambda request: httpx.Response(200, content=b""))
        async with http:
            async with client.stream_explain("x", "text") as reader:
                assert reader.status_code == 200


# ── Errors ─────────────────────────────────────────────────────────


class TestErrors:
    @pytest.mark.asyncio
    async def test_server_error_message_used(self):
        client, http = _client_for(
            lambda request: httpx.Response(400, json={"error": "code is required"})
        )
        async with http:
            with pytest.raises(TransportError) as exc_info:
                await _read_all(client)
        assert str(exc_info.value) == "code is required"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_fallback_message_for_non_json_body(self):
        client, http = _client_for(
            lambda request: httpx.Response(502, content=b"<html>Bad Gateway</html>")
        )
        async with http:
            with pytest.raises(TransportError, match="Server error: 502"):
                await _read_all(client)

    @pytest.mark.asyncio
    async def test_fallback_message_for_empty_error(self):
        client, http = _client_for(lambda request: httpx.Response(500, json={}))
        async with http:
            with pytest.raises(TransportError, match="Server error: 500"):
                await _read_all(client)

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        client, http = _client_for(handler)
        async with http:
            with pytest.raises(TransportError, match="Request failed: connection refused"):
                await _read_all(client)

    @pytest.mark.asyncio
    async def test_interrupted_body(self):
        async def body():
            yield b"data: partial\n"
            raise httpx.ReadError("connection reset")

        client, http = _client_for(lambda request: httpx.Response(200, content=body()))
        async with http:
            with pytest.raises(TransportError, match="Stream interrupted"):
                await _read_all(client)


# ── Lifecycle ──────────────────────────────────────────────────────


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self):
        http = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(200)),
            base_url="http://test",
        )
        async with ExplainClient("http://test", http_client=http):
            pass
        assert not http.is_closed
        await http.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        client = ExplainClient("http://127.0.0.1:1/")
        await client.aclose()
        assert client._client.is_closed
