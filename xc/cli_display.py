"""Rich rendering for explanations and history listings.

Provides the two-panel explanation view (highlighted code, Markdown
explanation), a Live wrapper that follows a session through store
events, and small formatting helpers for history tables.
"""

from __future__ import annotations

import time
from datetime import datetime

from rich.console import Console, Group
from rich.live import Live
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text

from xc.events import EventType, StoreEvent
from xc.schemas.explanation import Explanation
from xc.store import ExplanationStore

_PREVIEW_WIDTH = 40


def format_timestamp(timestamp: float, now: float | None = None) -> str:
    """Format a Unix timestamp relative to now, e.g. ``5m ago``."""
    now = time.time() if now is None else now
    diff = now - timestamp
    if diff < 60:
        return "Just now"
    if diff < 3600:
        return f"{int(diff // 60)}m ago"
    if diff < 86400:
        return f"{int(diff // 3600)}h ago"
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d")


def code_preview(code: str) -> str:
    """First line of the code, truncated to a short preview."""
    lines = code.strip().split("\n")
    first = lines[0] if lines else ""
    if len(first) > _PREVIEW_WIDTH:
        return first[:_PREVIEW_WIDTH] + "..."
    return first


def render_explanation(entry: Explanation, *, streaming: bool = False) -> Group:
    """Build the code and explanation panels for one entry."""
    code_panel = Panel(
        Syntax(entry.code, entry.language or "text", line_numbers=True, word_wrap=True),
        title="[bold]Code[/bold]",
        subtitle=f"[cyan]{escape(entry.language)}[/cyan]",
        border_style="blue",
    )

    if entry.explanation:
        body = Markdown(entry.explanation)
    else:
        body = Text("Waiting for explanation..." if streaming else "(empty)", style="dim")

    title = escape(entry.title) if entry.title else "Explanation"
    if streaming:
        title = f"{title} [dim](streaming)[/dim]"
    explanation_panel = Panel(
        body,
        title=f"[bold]{title}[/bold]",
        border_style="green" if entry.complete else "yellow",
    )
    return Group(code_panel, explanation_panel)


class LiveExplanationView:
    """Follows one store entry and re-renders it on every update.

    Register with ``store.emitter.add_listener(view.on_event)`` while the
    Live context is active.
    """

    def __init__(self, store: ExplanationStore, console: Console) -> None:
        self._store = store
        self._console = console
        self._entry_id: str | None = None
        self._live: Live | None = None

    def __enter__(self) -> LiveExplanationView:
        self._live = Live(
            Text("Connecting...", style="dim"),
            console=self._console,
            refresh_per_second=12,
            transient=False,
        )
        self._live.__enter__()
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._live is not None:
            self._live.__exit__(*exc_info)
            self._live = None

    def on_event(self, event: StoreEvent) -> None:
        """Store listener: refresh the view for the followed entry."""
        if self._entry_id is None and event.type == EventType.SESSION_STARTED:
            self._entry_id = event.entry_id
        if event.entry_id != self._entry_id or self._live is None:
            return

        if event.type == EventType.SESSION_FAILED:
            self._live.update(Text("Explanation failed.", style="red"))
            return

        entry = self._store.get(event.entry_id)
        if entry is not None:
            self._live.update(
                render_explanation(entry, streaming=not entry.complete)
            )
