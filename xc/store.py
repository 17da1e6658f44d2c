"""In-memory store of explanation entries visible to the user.

Holds the newest-first list of entries shown by the display layer,
including placeholders for sessions that are still streaming. Each
session only touches its own entry, so independent sessions can share
one store.
"""

from __future__ import annotations

import logging

from xc.events import EventEmitter, EventType
from xc.schemas.explanation import Explanation

logger = logging.getLogger(__name__)


class ExplanationStore:
    """Live explanation entries keyed by id."""

    def __init__(
        self,
        entries: list[Explanation] | None = None,
        emitter: EventEmitter | None = None,
    ) -> None:
        self._entries: dict[str, Explanation] = {}
        for entry in entries or []:
            self._entries[entry.id] = entry
        self.emitter = emitter or EventEmitter()

    def __contains__(self, entry_id: str) -> bool:
        return entry_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> list[Explanation]:
        """All entries, newest first."""
        return sorted(self._entries.values(), key=lambda e: e.timestamp, reverse=True)

    def get(self, entry_id: str) -> Explanation | None:
        return self._entries.get(entry_id)

    async def add(self, entry: Explanation) -> None:
        """Publish a new entry."""
        if entry.id in self._entries:
            raise ValueError(f"Entry already exists: {entry.id}")
        self._entries[entry.id] = entry
        await self.emitter.emit(EventType.SESSION_STARTED, entry.id, language=entry.language)

    async def update(self, entry: Explanation) -> None:
        """Replace an existing entry by id.

        Updates for entries that were already removed are ignored.
        """
        if entry.id not in self._entries:
            logger.debug("Ignoring update for removed entry %s", entry.id)
            return
        self._entries[entry.id] = entry
        event_type = EventType.SESSION_COMPLETED if entry.complete else EventType.RESULT_UPDATED
        await self.emitter.emit(
            event_type,
            entry.id,
            title=entry.title,
            language=entry.language,
            explanation_chars=len(entry.explanation),
        )

    async def remove(self, entry_id: str, reason: str = "") -> bool:
        """Remove an entry and notify listeners. Returns True if it existed."""
        if not self.discard(entry_id):
            return False
        await self.emitter.emit(EventType.SESSION_FAILED, entry_id, reason=reason)
        return True

    def discard(self, entry_id: str) -> bool:
        """Remove an entry without emitting events."""
        return self._entries.pop(entry_id, None) is not None
