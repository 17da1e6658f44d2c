"""HTTP client for the explain endpoint.

Sends one POST per explanation and exposes the streaming response body
as a ChunkReader. Non-success statuses and network failures surface as
TransportError; retrying the outer call is left to the caller.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from xc.errors import TransportError
from xc.schemas.explanation import ErrorResponse, ExplainRequest
from xc.streaming.reader import ChunkReader

logger = logging.getLogger(__name__)

EXPLAIN_PATH = "/api/explain"


class ExplainClient:
    """Async client for ``POST /api/explain``.

    Args:
        base_url: Root URL of the explain server.
        timeout: HTTP timeout in seconds.
        http_client: Optional pre-built httpx client (tests inject one
            with a mock transport). The caller owns its lifecycle.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> ExplainClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    @asynccontextmanager
    async def stream_explain(self, code: str, language: str) -> AsyncIterator[ChunkReader]:
        """Open the explanation stream for a code snippet.

        Yields:
            A ChunkReader over the response body.

        Raises:
            TransportError: On connection failure or a non-2xx status.
        """
        body = ExplainRequest(code=code, language=language).model_dump()
        try:
            async with self._client.stream("POST", EXPLAIN_PATH, json=body) as response:
                if not response.is_success:
                    await response.aread()
                    raise TransportError(
                        _error_message(response), status_code=response.status_code
                    )
                logger.info("Explain stream opened (%d)", response.status_code)
                yield ChunkReader(response)
        except httpx.HTTPError as e:
            raise TransportError(f"Request failed: {e}") from e


def _error_message(response: httpx.Response) -> str:
    """Extract the server's error message from a failed response."""
    fallback = f"Server error: {response.status_code}"
    try:
        data = ErrorResponse.model_validate(response.json())
    except (json.JSONDecodeError, ValueError):
        return fallback
    return data.error or fallback
