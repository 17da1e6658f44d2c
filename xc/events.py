"""Explanation store event emitter.

Emits structured events whenever the live explanation store changes so
that displays (the Rich live view, a future web UI) can follow sessions
as they stream: session start, each result update, completion and
failure.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class EventType(StrEnum):
    """Types of store events."""

    SESSION_STARTED = "session_started"
    RESULT_UPDATED = "result_updated"
    SESSION_COMPLETED = "session_completed"
    SESSION_FAILED = "session_failed"


class StoreEvent(BaseModel):
    """A single change to the live explanation store."""

    type: EventType = Field(description="Event type")
    entry_id: str = Field(description="Identifier of the affected entry")
    timestamp: float = Field(
        default_factory=time.time,
        description="Unix timestamp when the event occurred",
    )
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Event payload, varies by event type",
    )


# Type alias for event listener callbacks
EventListener = Callable[[StoreEvent], Any]


class EventEmitter:
    """Broadcasts store events to registered listeners.

    Listeners can be sync or async callables. Listener exceptions are
    logged but never propagate into the session that emitted the event.
    """

    def __init__(self) -> None:
        self._listeners: list[EventListener] = []

    def add_listener(self, listener: EventListener) -> None:
        """Register a listener to receive store events."""
        self._listeners.append(listener)

    def remove_listener(self, listener: EventListener) -> None:
        """Remove a previously registered listener."""
        self._listeners = [ln for ln in self._listeners if ln != listener]

    async def emit(self, event_type: EventType, entry_id: str, **data: Any) -> None:
        """Dispatch an event to every listener."""
        event = StoreEvent(type=event_type, entry_id=entry_id, data=data)

        for listener in self._listeners:
            try:
                result = listener(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.exception("Event listener error for %s", event_type)
