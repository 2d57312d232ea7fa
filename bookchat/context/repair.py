from __future__ import annotations

"""Ordered normalisation passes that coerce broken context JSON into valid JSON.

Each pass is a pure ``str -> str`` function. ``repair_json`` applies them
cumulatively in ``REPAIR_PASSES`` order, re-trying a strict parse after every
pass and stopping at the first success.
"""

import json
import re
from typing import Any, Callable, List, Optional, Tuple

UNKNOWN_VALUE = "値不明"

# --- Individual passes ---


def unescape_backslashes(text: str) -> str:
    """Collapse doubled backslashes (``\\\\`` -> ``\\``)."""
    if "\\\\" not in text:
        return text
    return text.replace("\\\\", "\\")


def _closes_string(text: str, index: int) -> bool:
    for ch in text[index + 1:]:
        if ch.isspace():
            continue
        return ch in ":,}]"
    return True


def requote_strings(text: str) -> str:
    """Un-escape ``\\"`` and re-escape quotes that sit inside string literals.

    A quote closes the current literal only when the next non-blank character
    is a structural one (``:`` ``,`` ``}`` ``]``) or the text ends there.
    Any other quote met inside a literal is content and gets escaped.
    """
    if '\\"' not in text:
        return text
    text = text.replace('\\"', '"')
    out: List[str] = []
    in_string = False
    for i, ch in enumerate(text):
        if ch != '"':
            out.append(ch)
        elif not in_string:
            in_string = True
            out.append(ch)
        elif _closes_string(text, i):
            in_string = False
            out.append(ch)
        else:
            out.append('\\"')
    return "".join(out)


_DUPLICATE_COMMAS = re.compile(r",(?:\s*,)+")


def collapse_commas(text: str) -> str:
    """Collapse runs of commas into one."""
    return _DUPLICATE_COMMAS.sub(",", text)


_EMPTY_VALUE = re.compile(r":\s*,")


def fill_empty_values(text: str) -> str:
    """``"key":,`` -> ``"key":"値不明",``."""
    return _EMPTY_VALUE.sub(f':"{UNKNOWN_VALUE}",', text)


_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def strip_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA.sub(r"\1", text)


_BARE_KEY = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)(\s*:)")


def quote_keys(text: str) -> str:
    """``{key:`` -> ``{"key":`` (ASCII identifiers only)."""
    return _BARE_KEY.sub(r'\1"\2"\3', text)


_SINGLE_QUOTED = re.compile(r"([{\[,:]\s*)'([^'\"\\]*)'")


def single_to_double_quotes(text: str) -> str:
    """Convert single-quoted keys/values to double-quoted ones."""
    return _SINGLE_QUOTED.sub(r'\1"\2"', text)


_KEY_WITHOUT_VALUE = re.compile(r'([{,]\s*)"([^"]+)"\s*,\s*"([^"]+)"\s*:')
_DANGLING_LAST_KEY = re.compile(r'([{,]\s*)"([^"]+)"(\s*)}')


def fill_dangling_keys(text: str) -> str:
    """Give a value to keys that have none.

    ``"k1","k2":`` -> ``"k1":"値不明","k2":`` and ``,"k"}`` -> ``,"k":"値不明"}``.
    Only strings in key position (right after ``{`` or ``,``) are touched.
    """
    text = _KEY_WITHOUT_VALUE.sub(rf'\1"\2":"{UNKNOWN_VALUE}","\3":', text)
    return _DANGLING_LAST_KEY.sub(rf'\1"\2":"{UNKNOWN_VALUE}"\3}}', text)


_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_LINE_CHARS = re.compile(r"[\t\n\r]")


def strip_control_chars(text: str) -> str:
    """Drop raw control characters; line breaks and tabs become a space."""
    return _CONTROL_CHARS.sub("", _LINE_CHARS.sub(" ", text))


RepairPass = Callable[[str], str]

REPAIR_PASSES: List[Tuple[str, RepairPass]] = [
    ("unescape_backslashes", unescape_backslashes),
    ("requote_strings", requote_strings),
    ("collapse_commas", collapse_commas),
    ("fill_empty_values", fill_empty_values),
    ("strip_trailing_commas", strip_trailing_commas),
    ("quote_keys", quote_keys),
    ("single_to_double_quotes", single_to_double_quotes),
    ("fill_dangling_keys", fill_dangling_keys),
    ("strip_control_chars", strip_control_chars),
]


# --- Pipeline ---


def _loads_object(text: str) -> Any:
    value = json.loads(text)
    if not isinstance(value, dict):
        raise ValueError(f"expected a JSON object, got {type(value).__name__}")
    return value


def repair_json(text: str) -> Tuple[Optional[dict], List[str], Optional[str], str]:
    """Parse ``text`` as a JSON object, repairing it pass by pass on failure.

    Returns ``(value, passes_applied, last_error, final_text)``. ``value`` is
    ``None`` when no pass produced a parseable object.
    """
    try:
        return _loads_object(text), [], None, text
    except (ValueError, RecursionError) as e:
        error = str(e)

    applied: List[str] = []
    fixed = text
    for name, fn in REPAIR_PASSES:
        fixed = fn(fixed)
        applied.append(name)
        try:
            return _loads_object(fixed), applied, None, fixed
        except (ValueError, RecursionError) as e:
            error = str(e)
    return None, applied, error, fixed
