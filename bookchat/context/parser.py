from __future__ import annotations

"""Best-effort parsing of context JSON into a ContextPayload.

Strict parse first, then the ordered repair passes, then regex field
extraction as the last resort. Nothing in here raises.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .extract import Extraction, extract
from .repair import repair_json
from .schema import ContextPayload, recovered_payload


@dataclass
class ParseResult:
    ok: bool
    value: Optional[ContextPayload] = None
    raw: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    passes: List[str] = field(default_factory=list)
    repaired_text: Optional[str] = None


def _field_pattern(name: str) -> "re.Pattern[str]":
    return re.compile(rf'"{name}"\s*:\s*"([^"]+)"')


_FIELD_PATTERNS = {
    name: _field_pattern(name)
    for name in ("problemId", "category", "question", "method", "debit", "credit")
}


def extract_fields(text: str) -> Dict[str, str]:
    """Pull the well-known string fields out of text that is not valid JSON."""
    found: Dict[str, str] = {}
    for name, pattern in _FIELD_PATTERNS.items():
        m = pattern.search(text)
        if m:
            found[name] = m.group(1)
    return found


def _recover(json_span: str, error: Optional[str], passes: List[str]) -> ParseResult:
    fields = extract_fields(json_span)
    problem_id = fields.pop("problemId", None)
    if not problem_id:
        return ParseResult(ok=False, error=error or "no problemId recoverable", passes=passes)
    payload = recovered_payload(problem_id, **fields)
    return ParseResult(ok=True, value=payload, error=error, passes=passes)


def parse(json_span: Optional[str]) -> ParseResult:
    """Parse a context JSON span, repairing it when needed.

    ``value.hasParseError`` is set when the payload was rebuilt from regex
    matches rather than parsed; ``raw`` is only filled for a real parse.
    """
    if not json_span:
        return ParseResult(ok=False, error="empty context")

    value, passes, error, fixed = repair_json(json_span)
    if value is None:
        return _recover(json_span, error, passes)
    try:
        payload = ContextPayload.model_validate(value)
    except ValidationError as e:
        return _recover(json_span, str(e), passes)
    return ParseResult(
        ok=True,
        value=payload,
        raw=value,
        passes=passes,
        repaired_text=fixed if passes else None,
    )


def parse_context(text: Optional[str]) -> tuple[Extraction, ParseResult]:
    """Extract and parse the context of a chat question in one call."""
    ext = extract(text)
    if not ext.has_context:
        return ext, ParseResult(ok=False, error="no context")
    return ext, parse(ext.json_span)
