"""Explain session controller.

Runs one explanation request end to end: publishes an optimistic entry
to the live store, decodes the stream while republishing the entry on
every increment, and finalizes or rolls back depending on how the
transport ends.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Callable
from typing import Any, Protocol

from xc.client import ExplainClient
from xc.schemas.explanation import Explanation
from xc.store import ExplanationStore
from xc.streaming.decoder import StreamDecoder

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[str], Any]


class HistorySink(Protocol):
    """Anything that can persist a completed explanation."""

    async def save(self, entry: Explanation) -> None: ...


class ExplainSession:
    """One decode session for one explain request.

    Args:
        client: Transport client used to open the stream.
        store: Live store that receives the entry.
        history: Optional persistent sink for the completed entry.
        max_accumulated_chars: Cap on the decoder's accumulated text.
    """

    def __init__(
        self,
        client: ExplainClient,
        store: ExplanationStore,
        *,
        history: HistorySink | None = None,
        max_accumulated_chars: int = 0,
    ) -> None:
        self._client = client
        self._store = store
        self._history = history
        self._max_chars = max_accumulated_chars

    async def run(
        self,
        code: str,
        language: str,
        *,
        on_complete: CompletionCallback | None = None,
        entry_id: str | None = None,
    ) -> Explanation:
        """Stream an explanation for ``code`` and return the final entry.

        ``on_complete`` is called exactly once with the entry id after the
        stream ends successfully. On any failure the entry is removed from
        the store and the exception propagates.
        """
        entry = Explanation(
            id=entry_id or uuid.uuid4().hex,
            code=code,
            language=language,
        )
        decoder = StreamDecoder(language, max_accumulated_chars=self._max_chars)
        started = time.monotonic()
        await self._store.add(entry)
        logger.info("Session %s started (%s)", entry.id[:8], language)

        try:
            async with self._client.stream_explain(code, language) as reader:
                async for chunk in reader:
                    for update in decoder.feed(chunk):
                        entry = entry.with_result(update.result)
                        await self._store.update(entry)
            final = decoder.finish()
        except asyncio.CancelledError:
            self._store.discard(entry.id)
            logger.info("Session %s cancelled", entry.id[:8])
            raise
        except Exception as e:
            await self._store.remove(entry.id, reason=str(e))
            logger.info("Session %s failed: %s", entry.id[:8], e)
            raise

        entry = entry.with_result(final.result, complete=True)
        await self._store.update(entry)
        if decoder.state.rejected_frames:
            logger.debug(
                "Session %s skipped %d malformed frame(s)",
                entry.id[:8], decoder.state.rejected_frames,
            )
        logger.info(
            "Session %s completed in %.1fs (%d chars)",
            entry.id[:8], time.monotonic() - started, len(final.accumulated),
        )

        if self._history is not None:
            try:
                await self._history.save(entry)
            except Exception:
                logger.exception("Failed to save session %s to history", entry.id[:8])

        if on_complete is not None:
            result = on_complete(entry.id)
            if asyncio.iscoroutine(result):
                await result
        return entry
