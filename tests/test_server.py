"""Tests for the FastAPI explain proxy.

Drives the app in-process through httpx's ASGI transport with the
upstream LiteLLM call patched out.
"""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from xc.client import ExplainClient
from xc.errors import TransportError
from xc.schemas.config import ServerConfig
from xc.server import create_app
from xc.server.upstream import UpstreamError
from xc.session import ExplainSession
from xc.store import ExplanationStore

_OPEN_STREAM = "xc.server.app.open_stream"


# ── Helpers ───────────────────────────────────────────────────


class _FakeStream:
    def __init__(self, contents, error: Exception | None = None):
        self._contents = contents
        self._error = error

    async def __aiter__(self):
        for content in self._contents:
            yield SimpleNamespace(
                choices=[SimpleNamespace(delta=SimpleNamespace(content=content))],
            )
        if self._error is not None:
            raise self._error


def _pieces(obj: dict, size: int = 7) -> list[str]:
    text = json.dumps(obj)
    return [text[i:i + size] for i in range(0, len(text), size)]


def _http(app) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


_RESULT = {"title": "Loop", "language": "python", "explanation": "Iterates **ten** times."}


# ── Validation ─────────────────────────────────────────────────


class TestValidation:
    @pytest.mark.asyncio
    async def test_missing_code(self):
        async with _http(create_app(ServerConfig())) as http:
            resp = await http.post("/api/explain", json={"language": "go"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "code is required"}

    @pytest.mark.asyncio
    async def test_empty_code(self):
        async with _http(create_app(ServerConfig())) as http:
            resp = await http.post("/api/explain", json={"code": "", "language": "go"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "code is required"

    @pytest.mark.asyncio
    async def test_missing_language(self):
        async with _http(create_app(ServerConfig())) as http:
            resp = await http.post("/api/explain", json={"code": "x = 1"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "language is required"}

    @pytest.mark.asyncio
    async def test_invalid_json_body(self):
        async with _http(create_app(ServerConfig())) as http:
            resp = await http.post(
                "/api/explain",
                content=b"{not json",
                headers={"content-type": "application/json"},
            )
        assert resp.status_code == 400
        assert resp.json() == {"error": "invalid JSON body"}

    @pytest.mark.asyncio
    async def test_non_object_body(self):
        async with _http(create_app(ServerConfig())) as http:
            resp = await http.post("/api/explain", json=["x"])
        assert resp.status_code == 400


# ── Streaming ──────────────────────────────────────────────────


class TestStreaming:
    @pytest.mark.asyncio
    async def test_streams_sse_frames(self):
        mock_open = AsyncMock(return_value=_FakeStream(["{", '"title":"T"', "}"]))
        with patch(_OPEN_STREAM, mock_open):
            async with _http(create_app(ServerConfig())) as http:
                resp = await http.post(
                    "/api/explain", json={"code": "x = 1", "language": "python"}
                )

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        assert resp.text.endswith("data: [DONE]\n\n")
        assert resp.text.count("data: ") == 4

    @pytest.mark.asyncio
    async def test_request_forwarded_upstream(self):
        mock_open = AsyncMock(return_value=_FakeStream([]))
        config = ServerConfig(model="test/model", max_retries=2)
        with patch(_OPEN_STREAM, mock_open):
            async with _http(create_app(config)) as http:
                await http.post("/api/explain", json={"code": "x = 1", "language": "python"})

        kwargs, retries = mock_open.await_args.args
        assert retries == 2
        assert kwargs["model"] == "test/model"
        assert kwargs["stream"] is True
        assert "x = 1" in kwargs["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_upstream_failure_is_500(self):
        mock_open = AsyncMock(side_effect=UpstreamError("down"))
        with patch(_OPEN_STREAM, mock_open):
            async with _http(create_app(ServerConfig())) as http:
                resp = await http.post("/api/explain", json={"code": "x", "language": "go"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to get explanation"}

    @pytest.mark.asyncio
    async def test_cors_preflight(self):
        async with _http(create_app(ServerConfig())) as http:
            resp = await http.options(
                "/api/explain",
                headers={
                    "Origin": "http://localhost:5173",
                    "Access-Control-Request-Method": "POST",
                    "Access-Control-Request-Headers": "Content-Type",
                },
            )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"


# ── End to end ─────────────────────────────────────────────────


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_session_against_app(self):
        mock_open = AsyncMock(return_value=_FakeStream(_pieces(_RESULT)))
        store = ExplanationStore()
        with patch(_OPEN_STREAM, mock_open):
            async with _http(create_app(ServerConfig())) as http:
                client = ExplainClient("http://test", http_client=http)
                entry = await ExplainSession(client, store).run("for i in range(10): pass", "text")

        assert entry.complete
        assert entry.title == "Loop"
        assert entry.language == "python"
        assert entry.explanation == "Iterates **ten** times."

    @pytest.mark.asyncio
    async def test_server_error_surfaces_message(self):
        store = ExplanationStore()
        async with _http(create_app(ServerConfig())) as http:
            client = ExplainClient("http://test", http_client=http)
            with pytest.raises(TransportError, match="language is required") as exc_info:
                await ExplainSession(client, store).run("x = 1", "")

        assert exc_info.value.status_code == 400
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_upstream_failure_mid_stream_rolls_back(self):
        truncated = _pieces(_RESULT)[:3]
        mock_open = AsyncMock(
            return_value=_FakeStream(truncated, error=RuntimeError("upstream reset"))
        )
        store = ExplanationStore()
        history = AsyncMock()
        completed: list[str] = []
        with patch(_OPEN_STREAM, mock_open):
            async with _http(create_app(ServerConfig())) as http:
                client = ExplainClient("http://test", http_client=http)
                session = ExplainSession(client, store, history=history)
                with pytest.raises(Exception):  # noqa: B017
                    await session.run("x = 1", "python", on_complete=completed.append)

        assert len(store) == 0
        history.save.assert_not_awaited()
        assert completed == []
