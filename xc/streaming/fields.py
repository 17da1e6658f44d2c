"""Partial field extraction from an incomplete JSON object.

The accumulated stream text is a growing prefix of one JSON object of
shape ``{"title": ..., "language": ..., "explanation": ...}`` and is not
parseable until the last byte arrives. These helpers scan it with
patterns to recover best-effort field values for the live preview.

Every function here is pure: the same input always yields the same
output, so the preview can be recomputed from scratch on each update.
"""

from __future__ import annotations

import re

from xc.schemas.explanation import ExplanationResult

# A complete JSON string body: plain characters or backslash-escaped pairs
_STRING_BODY = r'((?:[^"\\]|\\.)*)'

_TITLE_RE = re.compile(r'"title"\s*:\s*"' + _STRING_BODY + '"', re.DOTALL)
_LANGUAGE_RE = re.compile(r'"language"\s*:\s*"' + _STRING_BODY + '"', re.DOTALL)
_FIELD_PATTERNS = {"title": _TITLE_RE, "language": _LANGUAGE_RE}
_EXPLANATION_START_RE = re.compile(r'"explanation"\s*:\s*"')

# Closing quote of the last field followed by the end of the object
_OBJECT_END_RE = re.compile(r'"\s*}')

# A high/low surrogate pair is one escape so it decodes to one character
_SURROGATE_PAIR = r"u[dD][89abAB][0-9a-fA-F]{2}\\u[dD][c-fC-F][0-9a-fA-F]{2}"
_ESCAPE_RE = re.compile(r"\\(" + _SURROGATE_PAIR + r"|u[0-9a-fA-F]{4}|.)", re.DOTALL)

# Escape sequence cut off at the end of a partial slice, including a high
# surrogate still waiting for its low half
_DANGLING_ESCAPE_RE = re.compile(
    r"\\(?:u[dD][89abAB][0-9a-fA-F]{2}(?:\\(?:u[0-9a-fA-F]{0,3})?)?"
    r"|u[0-9a-fA-F]{0,3})?\Z"
)

_SIMPLE_ESCAPES = {
    "n": "\n",
    '"': '"',
    "\\": "\\",
    "t": "\t",
    "r": "\r",
    "/": "/",
    "b": "\b",
    "f": "\f",
}


def _replace_escape(match: re.Match[str]) -> str:
    seq = match.group(1)
    if seq in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[seq]
    if len(seq) == 11:
        high, low = int(seq[1:5], 16), int(seq[7:], 16)
        return chr(0x10000 + ((high - 0xD800) << 10) + (low - 0xDC00))
    if len(seq) == 5:
        return chr(int(seq[1:], 16))
    return match.group(0)


def unescape(raw: str) -> str:
    """Unescape a raw JSON string slice in a single left-to-right pass.

    Handles ``\\n``, ``\\"``, ``\\\\``, ``\\t`` plus the remaining JSON
    escapes. Unknown escapes are kept verbatim. Because the scan never
    revisits its own output, an escaped backslash followed by ``n`` stays
    a backslash and a letter.
    """
    return _ESCAPE_RE.sub(_replace_escape, raw)


def _is_escaped(text: str, index: int) -> bool:
    """Whether the character at ``index`` is preceded by an odd backslash run."""
    count = 0
    i = index - 1
    while i >= 0 and text[i] == "\\":
        count += 1
        i -= 1
    return count % 2 == 1


def _find_object_end(raw: str) -> int | None:
    """Index of the unescaped quote that closes the object, if present."""
    for match in _OBJECT_END_RE.finditer(raw):
        if not _is_escaped(raw, match.start()):
            return match.start()
    return None


def extract_string_field(text: str, key: str) -> str | None:
    """Return the raw value of a fully received string field, or None."""
    match = _FIELD_PATTERNS[key].search(text)
    return match.group(1) if match else None


def extract_partial_explanation(text: str) -> str | None:
    """Return the unescaped explanation, complete or still being written.

    Returns None when the explanation field has not started yet.
    """
    start = _EXPLANATION_START_RE.search(text)
    if not start:
        return None

    raw = text[start.end():]
    end = _find_object_end(raw)
    if end is not None:
        raw = raw[:end]
    else:
        # Withhold an escape sequence whose tail has not arrived yet
        dangling = _DANGLING_ESCAPE_RE.search(raw)
        if dangling and not _is_escaped(raw, dangling.start()):
            raw = raw[:dangling.start()]
    return unescape(raw)


def extract_fields(text: str, default_language: str = "") -> ExplanationResult:
    """Produce the best current estimate of the three streamed fields.

    Args:
        text: Accumulated stream text, a prefix of one JSON object.
        default_language: Caller's language guess, used until the stream
            supplies its own ``language`` value.

    Returns:
        An ExplanationResult. Fields not yet present keep their defaults.
    """
    title = extract_string_field(text, "title")
    language = extract_string_field(text, "language")
    explanation = extract_partial_explanation(text)
    return ExplanationResult(
        title=title or "",
        language=language or default_language,
        explanation=explanation or "",
    )
