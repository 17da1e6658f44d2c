"""Exceptions raised by the XC client and session layer.

Only transport-level failures are raised. Malformed frames and missing
fields inside the stream are handled locally by the decoder.
"""

from __future__ import annotations


class XCError(RuntimeError):
    """Base class for XC errors."""


class TransportError(XCError):
    """The explain request failed at the transport level.

    Raised for network errors and non-success HTTP statuses. Fatal to the
    session that observes it.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StreamLimitError(TransportError):
    """The accumulated stream text grew past the configured cap."""
