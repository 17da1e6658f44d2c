"""XC schema definitions.

All Pydantic v2 models used by the decoder, session layer, server and
history store.
"""

from xc.schemas.config import (
    ClientConfig,
    HistoryConfig,
    ServerConfig,
    XCConfig,
)
from xc.schemas.explanation import (
    ErrorResponse,
    ExplainRequest,
    Explanation,
    ExplanationResult,
)
from xc.schemas.streaming import (
    Choice,
    Delta,
    Envelope,
    StreamUpdate,
)

__all__ = [
    "Choice",
    "ClientConfig",
    "Delta",
    "Envelope",
    "ErrorResponse",
    "ExplainRequest",
    "Explanation",
    "ExplanationResult",
    "HistoryConfig",
    "ServerConfig",
    "StreamUpdate",
    "XCConfig",
]
