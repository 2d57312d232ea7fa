from __future__ import annotations

"""Pydantic models for the chat history and answer data files."""

import time
from datetime import datetime, timezone
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# --- Constants ---

STATUSES = {"pending", "answered"}
LEGACY_STATUSES = {"completed": "answered"}

EMPTY_CHAT_HISTORY: List[Any] = []
EMPTY_ANSWER_DATA = {"answers": []}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def new_entry_id() -> str:
    """Millisecond timestamp id, the format the front-end expects."""
    return str(int(time.time() * 1000))


# --- Pydantic models ---


class ChatEntry(BaseModel):
    """One conversation turn.

    Unknown keys are kept so a load/save cycle never drops data written by
    other tools. Entries written with ``questionId`` instead of ``id`` are
    normalised on load.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    question: str = ""
    answer: Optional[str] = None
    status: Literal[tuple(STATUSES)] = "pending"  # type: ignore[valid-type]
    timestamp: Optional[str] = None
    answeredAt: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _legacy_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("id") is None and data.get("questionId") is not None:
            data = dict(data)
            data["id"] = data["questionId"]
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v))
        return v

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, v: Any) -> Any:
        if v is None or v == "":
            return "pending"
        return LEGACY_STATUSES.get(v, v)

    @field_validator("question", mode="before")
    @classmethod
    def _question_text(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("answer", mode="before")
    @classmethod
    def _blank_answer(cls, v: Any) -> Any:
        # the server used to write "" for "no answer yet"
        if v == "":
            return None
        return v

    @property
    def is_answered(self) -> bool:
        return self.status == "answered"

    def to_json(self) -> dict:
        return self.model_dump(mode="json")


class AnswerRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    answer: str
    timestamp: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v))
        return v

    @field_validator("answer", mode="before")
    @classmethod
    def _answer_as_str(cls, v: Any) -> Any:
        # null answers are kept and skipped as blank when reconciling
        return "" if v is None else v


class AnswerData(BaseModel):
    model_config = ConfigDict(extra="allow")

    answers: List[AnswerRecord] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _answers_default(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("answers") is None:
            data = dict(data)
            data["answers"] = []
        return data
