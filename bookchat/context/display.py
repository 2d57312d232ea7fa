from __future__ import annotations

"""Turn a chat question carrying context into the text shown to the learner."""

import re
from dataclasses import dataclass
from typing import Optional

from .parser import parse_context

_PROBLEM_ID_TAG = re.compile(r"【問題ID:\s*([^】]+)】")
_CATEGORY_TAG = re.compile(r"【カテゴリ:\s*([^】]+)】")
_LEADING_BLANK_LINES = re.compile(r"^\s*\n+")


@dataclass
class DisplayInfo:
    display_text: Optional[str]
    has_context: bool = False
    problem_id: Optional[str] = None
    category: Optional[str] = None
    problem_text: Optional[str] = None
    user_question: Optional[str] = None
    has_parse_error: bool = False


def trim_leading_empty_lines(text: Optional[str]) -> Optional[str]:
    if not text:
        return text
    return _LEADING_BLANK_LINES.sub("", text, count=1)


def _already_formatted(text: str) -> DisplayInfo:
    pid = _PROBLEM_ID_TAG.search(text)
    cat = _CATEGORY_TAG.search(text)
    return DisplayInfo(
        display_text=text,
        has_context=True,
        problem_id=pid.group(1) if pid else None,
        category=cat.group(1) if cat else None,
    )


def format_display(text: Optional[str]) -> DisplayInfo:
    """Render ``text`` for display.

    Output layout: ``【問題ID: …】【カテゴリ: …】`` header line, the problem
    text and a blank line, then the learner's own question.
    """
    if not text:
        return DisplayInfo(display_text=text)
    if _PROBLEM_ID_TAG.search(text):
        return _already_formatted(text)

    ext, result = parse_context(text)
    if not ext.has_context:
        return DisplayInfo(display_text=text)
    user_text = trim_leading_empty_lines(ext.remainder) or ""
    if not result.ok or result.value is None:
        return DisplayInfo(display_text=user_text, user_question=user_text)

    payload = result.value
    parts = []
    if payload.problemId:
        header = f"【問題ID: {payload.problemId}】"
        if payload.category:
            header += f"【カテゴリ: {payload.category}】"
        parts.append(header + "\n")
    if payload.question:
        parts.append(payload.question + "\n\n")
    parts.append(user_text)

    return DisplayInfo(
        display_text="".join(parts),
        has_context=True,
        problem_id=payload.problemId,
        category=payload.category,
        problem_text=payload.question,
        user_question=user_text,
        has_parse_error=payload.hasParseError,
    )
