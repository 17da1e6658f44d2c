"""Envelope extraction for completed SSE frames."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from xc.schemas.streaming import Envelope

logger = logging.getLogger(__name__)


class MalformedFrameError(ValueError):
    """A frame did not parse as a chat-completion envelope."""


def parse_envelope(frame: str) -> Envelope:
    """Parse a frame string into an Envelope.

    Raises:
        MalformedFrameError: If the frame is not JSON or does not match the
            envelope shape.
    """
    try:
        return Envelope.model_validate_json(frame)
    except ValidationError as e:
        raise MalformedFrameError(f"Malformed frame: {e.error_count()} error(s)") from e


def extract_delta(frame: str) -> str | None:
    """Return the text increment carried by a frame.

    Returns None for envelopes without a content delta (role-only or
    terminal chunks). Malformed frames raise MalformedFrameError so the
    caller can record them and keep reading.
    """
    envelope = parse_envelope(frame)
    return envelope.content
