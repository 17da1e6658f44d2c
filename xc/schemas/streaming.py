"""Streaming schemas for the chat-completion wire format.

Defines the outer Envelope carried by every SSE frame and the
StreamUpdate delivered to the session layer after each text increment.
All envelope fields are optional: a frame without a content delta is a
valid state, not an error.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from xc.schemas.explanation import ExplanationResult


class Delta(BaseModel):
    """Incremental message delta inside one choice."""

    role: str | None = Field(default=None, description="Role, sent on the first chunk only")
    content: str | None = Field(default=None, description="New text in this chunk")


class Choice(BaseModel):
    """One completion choice of a streamed chunk."""

    index: int = Field(default=0, description="Choice index")
    delta: Delta | None = Field(default=None, description="Incremental delta")
    finish_reason: str | None = Field(default=None, description="Set on the final chunk")


class Envelope(BaseModel):
    """Outer JSON object of a single SSE frame.

    Only ``choices[0].delta.content`` is consumed; every other field the
    provider sends (id, model, usage, ...) is ignored.
    """

    choices: list[Choice] = Field(default_factory=list, description="Completion choices")

    @property
    def content(self) -> str | None:
        """The text increment carried by this envelope, if any."""
        if not self.choices:
            return None
        delta = self.choices[0].delta
        return delta.content if delta else None


class StreamUpdate(BaseModel):
    """A single decoded increment of the explanation stream."""

    delta: str = Field(description="New text appended in this update")
    accumulated: str = Field(description="Full JSON fragment accumulated so far")
    result: ExplanationResult = Field(description="Result recomputed from the accumulated text")
    is_complete: bool = Field(default=False, description="True on the final update")
