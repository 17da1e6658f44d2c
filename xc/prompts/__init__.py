"""Prompt template loader for the explain server.

Loads Markdown prompt templates from the prompts/ directory and renders
them with Jinja2 variable substitution.
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import BaseLoader, Environment

# Directory containing the .md prompt template files
_PROMPTS_DIR = Path(__file__).parent


def render_prompt(template_name: str, **variables: object) -> str:
    """Load a prompt template and render it with Jinja2 variables.

    Args:
        template_name: Name of the template file (without .md extension).
        **variables: Template variables to inject (code, language).

    Returns:
        The rendered prompt string.

    Raises:
        FileNotFoundError: If the template file does not exist.
    """
    path = _PROMPTS_DIR / f"{template_name}.md"
    if not path.exists():
        raise FileNotFoundError(f"Prompt template not found: {path}")

    env = Environment(loader=BaseLoader(), keep_trailing_newline=False)
    return env.from_string(path.read_text(encoding="utf-8")).render(**variables)


def build_messages(code: str, language: str) -> list[dict[str, str]]:
    """Build the OpenAI-format message list for one explain request."""
    return [
        {"role": "system", "content": render_prompt("explain_system")},
        {
            "role": "user",
            "content": render_prompt("explain_user", code=code, language=language),
        },
    ]
