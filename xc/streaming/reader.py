"""Chunk reader over an open httpx streaming response."""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx

from xc.errors import TransportError


class ChunkReader:
    """Yields raw byte chunks from a streaming response.

    Read failures are re-raised as TransportError; the reader keeps no
    state beyond the response handle.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_bytes():
                if chunk:
                    yield chunk
        except httpx.HTTPError as e:
            raise TransportError(f"Stream interrupted: {e}") from e
