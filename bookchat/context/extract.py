from __future__ import annotations

"""Locate the ``#context: {...}`` span embedded in a chat question."""

import json
from dataclasses import dataclass
from typing import Optional

CONTEXT_MARKER = "#context:"


@dataclass
class Extraction:
    has_context: bool
    json_span: Optional[str]
    remainder: Optional[str]
    before: str = ""


def _match_brace(text: str, start: int, *, skip_strings: bool) -> int:
    """Return the index one past the brace closing ``text[start]``, or -1."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if skip_strings and in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if skip_strings and ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
    return -1


def _parses(span: str) -> bool:
    try:
        json.loads(span)
    except (ValueError, RecursionError):
        return False
    return True


def _span_end(text: str, start: int) -> int:
    plain = _match_brace(text, start, skip_strings=False)
    quoted = _match_brace(text, start, skip_strings=True)
    # Braces inside string values throw the plain count off; prefer the
    # quote-aware span only when it is the one that parses.
    if quoted > start and quoted != plain and _parses(text[start:quoted]):
        if plain <= start or not _parses(text[start:plain]):
            return quoted
    return plain


def extract(text: Optional[str]) -> Extraction:
    """Split ``text`` into the text before the marker, the JSON span, and the remainder.

    Text without a marker, or whose JSON never closes, comes back with
    ``has_context=False`` and ``remainder`` equal to the input.
    """
    if not text or CONTEXT_MARKER not in text:
        return Extraction(has_context=False, json_span=None, remainder=text)

    before, _, rest = text.partition(CONTEXT_MARKER)
    json_start = rest.find("{")
    if json_start < 0:
        return Extraction(has_context=False, json_span=None, remainder=text)
    json_end = _span_end(rest, json_start)
    if json_end <= json_start:
        return Extraction(has_context=False, json_span=None, remainder=text)

    return Extraction(
        has_context=True,
        json_span=rest[json_start:json_end],
        remainder=rest[json_end:].strip(),
        before=before.strip(),
    )
