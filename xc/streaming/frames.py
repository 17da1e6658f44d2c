"""SSE frame assembly.

Splits the growing transport stream into lines, carries the unterminated
tail across chunk boundaries, and reassembles ``data:`` payloads that may
span several lines into complete frame strings.
"""

from __future__ import annotations

import codecs
import logging

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class FrameAssembler:
    """Turns raw transport chunks into complete event-payload frames.

    A payload opens on a ``data: `` line and keeps absorbing non-empty
    lines until its trimmed text ends with a closing brace. Blank lines do
    not close a payload.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.carry = ""
        self.payload: str | None = None
        self.dropped = 0

    def feed(self, chunk: bytes | str) -> list[str]:
        """Consume one chunk and return the frames it completed."""
        text = self._decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        lines = (self.carry + text).split("\n")
        self.carry = lines.pop()

        frames: list[str] = []
        for line in lines:
            frame = self._process_line(line.removesuffix("\r"))
            if frame is not None:
                frames.append(frame)
        return frames

    def flush(self) -> list[str]:
        """Process whatever is left once the transport has ended.

        A final line without a trailing newline is treated as complete. A
        payload that never closed is dropped.
        """
        tail = self._decoder.decode(b"", final=True)
        frames = self.feed(tail + "\n") if (self.carry or tail) else []
        if self.payload is not None:
            logger.debug("Dropping unterminated payload at end of stream: %r", self.payload[:80])
            self.dropped += 1
            self.payload = None
        return frames

    def _process_line(self, line: str) -> str | None:
        if line.startswith(DATA_PREFIX):
            if self.payload is not None:
                logger.debug("Payload superseded before completion: %r", self.payload[:80])
                self.dropped += 1
            self.payload = line[len(DATA_PREFIX):]
        elif self.payload is not None and line:
            self.payload = f"{self.payload}\n{line}"
        else:
            return None

        stripped = self.payload.strip()
        if stripped == DONE_SENTINEL:
            logger.debug("Stream terminator received")
            self.payload = None
            return None
        if stripped.endswith("}"):
            frame, self.payload = self.payload, None
            return frame
        return None
