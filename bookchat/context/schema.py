from __future__ import annotations

"""Pydantic models for the problem snapshot embedded in a ``#context:`` span."""

import json
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# --- Sentinels used when a payload is rebuilt from partial data ---

UNKNOWN = "不明"
UNSELECTED_METHOD = "未選択"
UNKNOWN_QUESTION = "質問内容が不明です"


class UserAnswer(BaseModel):
    model_config = ConfigDict(extra="allow")

    method: Optional[str] = None
    debit: Optional[str] = None
    credit: Optional[str] = None

    @field_validator("method", "debit", "credit", mode="before")
    @classmethod
    def _as_text(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (list, dict)):
            return json.dumps(v, ensure_ascii=False)
        return str(v)


def _id_text(v: Any) -> Optional[str]:
    if isinstance(v, str):
        return v
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    if isinstance(v, float):
        return str(int(v)) if v.is_integer() else str(v)
    # lists, objects and booleans are not ids
    return None


class ContextPayload(BaseModel):
    """Snapshot of one problem attempt, as sent along with a chat question.

    Older writers used ``id`` instead of ``problemId`` and a single
    ``correctAnswer`` instead of the ``correctAnswers`` list; both are
    normalised here so callers only see the current shape.
    """

    model_config = ConfigDict(extra="allow")

    problemId: Optional[str] = None
    category: Optional[str] = None
    question: Optional[str] = None
    userAnswer: Optional[UserAnswer] = None
    correctAnswers: Optional[List[Any]] = None
    hasParseError: bool = False

    @model_validator(mode="before")
    @classmethod
    def _normalize_legacy_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("problemId") is None and data.get("id") is not None:
            data["problemId"] = _id_text(data.pop("id"))
        elif data.get("problemId") is not None and not isinstance(data["problemId"], str):
            data["problemId"] = _id_text(data["problemId"])
        if "correctAnswers" not in data and "correctAnswer" in data:
            data["correctAnswers"] = [data.pop("correctAnswer")]
        if data.get("correctAnswers") is not None and not isinstance(data["correctAnswers"], list):
            data["correctAnswers"] = [data["correctAnswers"]]
        if data.get("userAnswer") is not None and not isinstance(data["userAnswer"], dict):
            data["userAnswer"] = None
        for key in ("category", "question"):
            if data.get(key) is not None and not isinstance(data[key], str):
                data[key] = str(data[key])
        return data

    @property
    def is_useful(self) -> bool:
        return bool(self.problemId)


def recovered_payload(
    problem_id: str,
    *,
    category: Optional[str] = None,
    question: Optional[str] = None,
    method: Optional[str] = None,
    debit: Optional[str] = None,
    credit: Optional[str] = None,
) -> ContextPayload:
    """Build the minimal payload used when only a few fields could be salvaged."""
    return ContextPayload(
        problemId=problem_id,
        category=category or UNKNOWN,
        question=question or UNKNOWN_QUESTION,
        userAnswer=UserAnswer(
            method=method or UNSELECTED_METHOD,
            debit=debit or UNKNOWN,
            credit=credit or UNKNOWN,
        ),
        hasParseError=True,
    )
