"""Explanation schemas.

Defines the ExplanationResult triple produced by the stream decoder, the
Explanation entry published to the live store and saved to history, and
the request/response bodies of the explain endpoint.
"""

from __future__ import annotations

import time

from pydantic import BaseModel, Field


class ExplanationResult(BaseModel):
    """Best current estimate of the three streamed fields."""

    title: str = Field(default="", description="Short title for the snippet")
    language: str = Field(default="", description="Language tag of the snippet")
    explanation: str = Field(default="", description="Markdown explanation text")


class Explanation(BaseModel):
    """A single explanation entry, live or persisted.

    Created as an optimistic placeholder when a session starts, refreshed
    on every stream increment, and saved to history once complete.
    """

    id: str = Field(description="Unique entry identifier")
    code: str = Field(description="The code that was explained")
    language: str = Field(description="Language tag (caller guess, then streamed value)")
    title: str = Field(default="", description="Streamed title")
    explanation: str = Field(default="", description="Streamed explanation")
    timestamp: float = Field(
        default_factory=time.time,
        description="Unix timestamp when the explanation was requested",
    )
    complete: bool = Field(default=False, description="True once the stream has ended")

    def with_result(self, result: ExplanationResult, *, complete: bool = False) -> Explanation:
        """Return a copy of this entry carrying the given result triple."""
        return self.model_copy(
            update={
                "title": result.title,
                "language": result.language or self.language,
                "explanation": result.explanation,
                "complete": complete,
            }
        )


class ExplainRequest(BaseModel):
    """Body of POST /api/explain."""

    code: str = Field(description="Source code to explain")
    language: str = Field(description="Language of the code")


class ErrorResponse(BaseModel):
    """Body of a non-2xx response from the explain endpoint."""

    error: str | None = Field(default=None, description="Human-readable error message")
