"""Incremental decoder for the explanation stream.

Composes the frame assembler, envelope extractor and partial field
extractor around a single StreamState owned by one decode session. Each
text increment produces a StreamUpdate whose result is recomputed from
the whole accumulated text. When the transport ends, the accumulated
text is parsed once as real JSON and that parse replaces the preview.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass, field

from pydantic import ValidationError

from xc.errors import StreamLimitError
from xc.schemas.explanation import ExplanationResult
from xc.schemas.streaming import StreamUpdate
from xc.streaming.envelope import MalformedFrameError, extract_delta
from xc.streaming.fields import extract_fields
from xc.streaming.frames import FrameAssembler

logger = logging.getLogger(__name__)

_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*\n(.*?)\n```", re.DOTALL)


@dataclass
class StreamState:
    """Mutable state of one decode session.

    ``accumulated_text`` is append-only. ``carry`` and ``frame_payload``
    mirror the frame assembler's buffers after every chunk.
    """

    language: str = ""
    carry: str = ""
    frame_payload: str | None = None
    accumulated_text: str = ""
    result: ExplanationResult = field(default_factory=ExplanationResult)
    rejected_frames: int = 0
    complete: bool = False

    def __post_init__(self) -> None:
        if not self.result.language:
            self.result = ExplanationResult(language=self.language)


class StreamDecoder:
    """Decodes SSE chunks into progressively refined explanation results.

    Args:
        language: Caller's language guess, used until the stream supplies one.
        max_accumulated_chars: Cap on the accumulated text; 0 disables it.
    """

    def __init__(self, language: str = "", *, max_accumulated_chars: int = 0) -> None:
        self.state = StreamState(language=language)
        self._assembler = FrameAssembler()
        self._max_chars = max_accumulated_chars

    @property
    def result(self) -> ExplanationResult:
        """The most recently published result."""
        return self.state.result

    def feed(self, chunk: bytes | str) -> list[StreamUpdate]:
        """Consume one transport chunk and return one update per text increment."""
        frames = self._assembler.feed(chunk)
        updates = self._consume(frames)
        self._sync_buffers()
        return updates

    def finish(self) -> StreamUpdate:
        """Flush the transport tail and produce the authoritative final update.

        The accumulated text is parsed as JSON. On success that value
        replaces the preview; otherwise the last preview stands.
        """
        self._consume(self._assembler.flush())
        self._sync_buffers()

        final = parse_final(self.state.accumulated_text)
        if final is not None:
            if not final.language:
                final = final.model_copy(update={"language": self.state.language})
            self.state.result = final
        else:
            logger.warning(
                "Final stream text is not valid JSON (%d chars); keeping preview",
                len(self.state.accumulated_text),
            )
        self.state.complete = True
        return StreamUpdate(
            delta="",
            accumulated=self.state.accumulated_text,
            result=self.state.result,
            is_complete=True,
        )

    def _consume(self, frames: list[str]) -> list[StreamUpdate]:
        updates: list[StreamUpdate] = []
        for frame in frames:
            try:
                delta = extract_delta(frame)
            except MalformedFrameError as e:
                self.state.rejected_frames += 1
                logger.debug("Skipping frame (%s): %r", e, frame[:80])
                continue
            if not delta:
                continue
            updates.append(self._append(delta))
        return updates

    def _append(self, delta: str) -> StreamUpdate:
        new_length = len(self.state.accumulated_text) + len(delta)
        if self._max_chars and new_length > self._max_chars:
            raise StreamLimitError(
                f"Stream exceeded {self._max_chars} characters"
            )
        self.state.accumulated_text += delta
        self.state.result = extract_fields(
            self.state.accumulated_text, self.state.language
        )
        return StreamUpdate(
            delta=delta,
            accumulated=self.state.accumulated_text,
            result=self.state.result,
        )

    def _sync_buffers(self) -> None:
        self.state.carry = self._assembler.carry
        self.state.frame_payload = self._assembler.payload
        self.state.rejected_frames += self._assembler.dropped
        self._assembler.dropped = 0


def parse_final(text: str) -> ExplanationResult | None:
    """Parse the complete stream text as an ExplanationResult.

    Tries a direct JSON parse first, then a fenced ```json block.
    Returns None if neither validates.
    """
    candidates = [text.strip()]
    fenced = _FENCED_JSON_RE.search(text)
    if fenced:
        candidates.append(fenced.group(1))

    for candidate in candidates:
        if not candidate:
            continue
        try:
            data = json.loads(candidate)
            return ExplanationResult.model_validate(data)
        except (json.JSONDecodeError, ValidationError):
            continue
    return None


async def decode_stream(
    chunks: AsyncIterable[bytes | str],
    language: str = "",
    *,
    max_accumulated_chars: int = 0,
) -> AsyncIterator[StreamUpdate]:
    """Decode an async chunk stream, yielding updates and a final update."""
    decoder = StreamDecoder(language, max_accumulated_chars=max_accumulated_chars)
    async for chunk in chunks:
        for update in decoder.feed(chunk):
            yield update
    yield decoder.finish()
