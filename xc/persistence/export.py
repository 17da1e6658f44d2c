"""Explanation export formatters.

Provides JSON and Markdown export functions for history entries.
"""

from __future__ import annotations

from datetime import UTC, datetime

from xc.schemas.explanation import Explanation


def export_json(entry: Explanation) -> str:
    """Export an explanation as pretty-printed JSON."""
    return entry.model_dump_json(indent=2)


def export_markdown(entry: Explanation) -> str:
    """Export an explanation as a Markdown document.

    The code is embedded in a fenced block tagged with its language,
    followed by the explanation text as-is (it is already Markdown).
    """
    lines: list[str] = []

    lines.append(f"# {entry.title or 'Explanation'}")
    lines.append("")
    created = datetime.fromtimestamp(entry.timestamp, tz=UTC)
    lines.append(f"- **ID:** {entry.id}")
    lines.append(f"- **Language:** {entry.language}")
    lines.append(f"- **Created:** {created.isoformat()}")
    lines.append("")

    lines.append("## Code")
    lines.append("")
    lines.append(f"```{entry.language}")
    lines.append(entry.code.rstrip("\n"))
    lines.append("```")
    lines.append("")

    lines.append("## Explanation")
    lines.append("")
    lines.append(entry.explanation.strip())
    lines.append("")

    return "\n".join(lines)
