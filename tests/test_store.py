"""Tests for the live explanation store and its event emitter."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest

from xc.events import EventEmitter, EventType, StoreEvent
from xc.schemas.explanation import Explanation, ExplanationResult
from xc.store import ExplanationStore

# ── Factories ──────────────────────────────────────────────────────


def _make_entry(entry_id: str = "e1", timestamp: float = 1000.0, **overrides) -> Explanation:
    defaults = {
        "id": entry_id,
        "code": "print('hi')",
        "language": "python",
        "timestamp": timestamp,
    }
    defaults.update(overrides)
    return Explanation(**defaults)


# ── Event Emitter ──────────────────────────────────────────────────


class TestEventEmitter:
    @pytest.mark.asyncio
    async def test_sync_listener(self):
        emitter = EventEmitter()
        received: list[StoreEvent] = []
        emitter.add_listener(received.append)

        await emitter.emit(EventType.SESSION_STARTED, "e1", language="go")

        assert len(received) == 1
        assert received[0].type == EventType.SESSION_STARTED
        assert received[0].entry_id == "e1"
        assert received[0].data == {"language": "go"}

    @pytest.mark.asyncio
    async def test_async_listener(self):
        emitter = EventEmitter()
        listener = AsyncMock()
        emitter.add_listener(listener)
        await emitter.emit(EventType.RESULT_UPDATED, "e1")
        listener.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_remove_listener(self):
        emitter = EventEmitter()
        received: list[StoreEvent] = []
        emitter.add_listener(received.append)
        emitter.remove_listener(received.append)
        await emitter.emit(EventType.RESULT_UPDATED, "e1")
        assert received == []

    @pytest.mark.asyncio
    async def test_listener_error_logged_not_raised(self, caplog):
        emitter = EventEmitter()
        received: list[StoreEvent] = []

        def broken(event):
            raise RuntimeError("boom")

        emitter.add_listener(broken)
        emitter.add_listener(received.append)
        with caplog.at_level(logging.ERROR, logger="xc.events"):
            await emitter.emit(EventType.SESSION_FAILED, "e1")

        assert len(received) == 1
        assert "Event listener error" in caplog.text

    def test_event_types_are_strings(self):
        assert EventType.SESSION_COMPLETED == "session_completed"


# ── Store ──────────────────────────────────────────────────────────


class TestExplanationStore:
    @pytest.mark.asyncio
    async def test_add_and_get(self):
        store = ExplanationStore()
        entry = _make_entry()
        await store.add(entry)
        assert store.get("e1") == entry
        assert "e1" in store
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_duplicate_add_rejected(self):
        store = ExplanationStore()
        await store.add(_make_entry())
        with pytest.raises(ValueError, match="already exists"):
            await store.add(_make_entry())

    def test_entries_newest_first(self):
        store = ExplanationStore([
            _make_entry("old", 1.0),
            _make_entry("new", 3.0),
            _make_entry("mid", 2.0),
        ])
        assert [e.id for e in store.entries()] == ["new", "mid", "old"]

    @pytest.mark.asyncio
    async def test_update_replaces_by_id(self):
        store = ExplanationStore()
        entry = _make_entry()
        await store.add(entry)

        updated = entry.with_result(ExplanationResult(title="T", explanation="E"))
        await store.update(updated)

        assert store.get("e1").title == "T"
        assert store.get("e1").language == "python"
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_update_emits_completed_when_complete(self):
        store = ExplanationStore()
        events: list[StoreEvent] = []
        store.emitter.add_listener(events.append)
        entry = _make_entry()
        await store.add(entry)

        await store.update(entry.with_result(ExplanationResult(explanation="abc")))
        await store.update(entry.with_result(ExplanationResult(explanation="abcd"), complete=True))

        assert [e.type for e in events] == [
            EventType.SESSION_STARTED,
            EventType.RESULT_UPDATED,
            EventType.SESSION_COMPLETED,
        ]
        assert events[1].data["explanation_chars"] == 3

    @pytest.mark.asyncio
    async def test_update_after_remove_ignored(self):
        store = ExplanationStore()
        entry = _make_entry()
        await store.add(entry)
        await store.remove("e1")
        await store.update(entry.with_result(ExplanationResult(title="late")))
        assert "e1" not in store

    @pytest.mark.asyncio
    async def test_remove_emits_failed(self):
        store = ExplanationStore()
        events: list[StoreEvent] = []
        store.emitter.add_listener(events.append)
        await store.add(_make_entry())

        assert await store.remove("e1", reason="network down") is True
        assert await store.remove("e1") is False
        assert events[-1].type == EventType.SESSION_FAILED
        assert events[-1].data == {"reason": "network down"}

    def test_discard_is_silent(self):
        store = ExplanationStore([_make_entry()])
        assert store.discard("e1") is True
        assert store.discard("e1") is False
        assert len(store) == 0


# ── Explanation.with_result ────────────────────────────────────────


class TestWithResult:
    def test_keeps_language_when_result_has_none(self):
        entry = _make_entry(language="rust")
        assert entry.with_result(ExplanationResult(title="x")).language == "rust"

    def test_does_not_mutate_original(self):
        entry = _make_entry()
        entry.with_result(ExplanationResult(title="x"), complete=True)
        assert entry.title == ""
        assert entry.complete is False
