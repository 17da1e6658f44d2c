"""Language guessing for code submitted without an explicit language."""

from __future__ import annotations

from pathlib import Path

from pygments.lexers import guess_lexer
from pygments.util import ClassNotFound

_EXTENSIONS: dict[str, str] = {
    "py": "python",
    "js": "javascript",
    "mjs": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "rs": "rust",
    "rb": "ruby",
    "go": "go",
    "java": "java",
    "c": "c",
    "h": "c",
    "cpp": "cpp",
    "cc": "cpp",
    "hpp": "cpp",
    "cs": "csharp",
    "html": "html",
    "css": "css",
    "sql": "sql",
    "sh": "bash",
    "bash": "bash",
    "yaml": "yaml",
    "yml": "yaml",
    "toml": "toml",
    "json": "json",
    "xml": "xml",
    "md": "markdown",
}

FALLBACK_LANGUAGE = "text"


def language_from_path(path: str | Path) -> str | None:
    """Map a file name to a language tag by its extension."""
    suffix = Path(path).suffix.lower().lstrip(".")
    return _EXTENSIONS.get(suffix)


def guess_language(path: str | Path | None = None, code: str = "") -> str:
    """Guess the language of a snippet.

    Uses the file extension when a path is given, then Pygments content
    analysis, then falls back to ``text``.
    """
    if path is not None:
        language = language_from_path(path)
        if language:
            return language

    if code.strip():
        try:
            lexer = guess_lexer(code)
        except ClassNotFound:
            return FALLBACK_LANGUAGE
        if lexer.aliases:
            return lexer.aliases[0]
    return FALLBACK_LANGUAGE
