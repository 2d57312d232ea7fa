from __future__ import annotations

"""Flat JSON file store for the chat history and answer data files.

Reads and writes always cover the whole file. Files are pretty printed with
a 2-space indent and non-ASCII text kept as is.
"""

import json
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from pydantic import ValidationError

from .schema import (
    EMPTY_ANSWER_DATA,
    EMPTY_CHAT_HISTORY,
    AnswerData,
    AnswerRecord,
    ChatEntry,
    new_entry_id,
    utc_now_iso,
)

PathLike = Union[str, Path]


class StoreFormatError(ValueError):
    """A data file exists but does not hold the expected JSON structure."""


def ensure_file_exists(path: PathLike, initial: Any) -> Path:
    """Create ``path`` (and its parent directories) holding ``initial`` if missing."""
    p = Path(path)
    if not p.exists():
        p.parent.mkdir(parents=True, exist_ok=True)
        write_json(p, initial)
        print(f"Created {p}")
    return p


def read_json(path: PathLike) -> Any:
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        text = f.read()
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise StoreFormatError(f"{p}: invalid JSON ({e})") from e


def write_json(path: PathLike, data: Any) -> None:
    p = Path(path)
    with p.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


# --- Chat history ---


def read_chat_documents(path: PathLike) -> List[Any]:
    """Read a chat history file without validating the entries.

    Only the document shape is checked: anything but a JSON array raises
    StoreFormatError.
    """
    data = read_json(path)
    if not isinstance(data, list):
        raise StoreFormatError(f"{path}: expected a JSON array, got {type(data).__name__}")
    return data


def parse_chat_history(data: Any, *, source: str = "chat history") -> List[ChatEntry]:
    if not isinstance(data, list):
        raise StoreFormatError(f"{source}: expected a JSON array, got {type(data).__name__}")
    try:
        return [ChatEntry.model_validate(item) for item in data]
    except ValidationError as e:
        raise StoreFormatError(f"{source}: invalid chat entry ({e})") from e


def load_chat_history(path: PathLike) -> List[ChatEntry]:
    """Load every entry of a chat history file.

    Raises FileNotFoundError for a missing file and StoreFormatError when the
    content is not an array of chat entries.
    """
    return parse_chat_history(read_json(path), source=str(path))


def save_chat_history(path: PathLike, entries: Iterable[Union[ChatEntry, Any]]) -> None:
    # entries that never validated are written back untouched
    write_json(path, [e.to_json() if isinstance(e, ChatEntry) else e for e in entries])


def find_entry(path: PathLike, entry_id: str) -> Optional[ChatEntry]:
    for entry in load_chat_history(path):
        if entry.id == str(entry_id):
            return entry
    return None


def add_question(path: PathLike, question: str, context_instructions: Any = None) -> ChatEntry:
    """Append a new pending question and return it."""
    if not question or not question.strip():
        raise ValueError("question is empty")
    ensure_file_exists(path, EMPTY_CHAT_HISTORY)
    entries = load_chat_history(path)
    fields = {
        "id": new_entry_id(),
        "question": question,
        "answer": None,
        "status": "pending",
        "timestamp": utc_now_iso(),
    }
    if context_instructions is not None:
        fields["contextInstructions"] = context_instructions
    entry = ChatEntry.model_validate(fields)
    entries.append(entry)
    save_chat_history(path, entries)
    return entry


def delete_entry(path: PathLike, entry_id: str) -> bool:
    entries = load_chat_history(path)
    kept = [e for e in entries if e.id != str(entry_id)]
    if len(kept) == len(entries):
        return False
    save_chat_history(path, kept)
    return True


# --- Answer data ---


def parse_answer_data(data: Any, *, source: str = "answer data") -> AnswerData:
    if not isinstance(data, dict):
        raise StoreFormatError(f"{source}: expected a JSON object, got {type(data).__name__}")
    if data.get("answers") is not None and not isinstance(data["answers"], list):
        raise StoreFormatError(f"{source}: 'answers' must be an array")
    try:
        return AnswerData.model_validate(data)
    except ValidationError as e:
        raise StoreFormatError(f"{source}: invalid answer record ({e})") from e


def load_answer_data(path: PathLike) -> AnswerData:
    return parse_answer_data(read_json(path), source=str(path))


def save_answer_data(path: PathLike, data: AnswerData) -> None:
    write_json(path, data.model_dump(mode="json"))


def add_answer(path: PathLike, entry_id: str, answer: str) -> AnswerRecord:
    """Insert or replace the answer for ``entry_id`` in the answer data file."""
    if not answer or not answer.strip():
        raise ValueError("answer is empty")
    ensure_file_exists(path, EMPTY_ANSWER_DATA)
    data = load_answer_data(path)
    record = AnswerRecord(id=str(entry_id), answer=answer, timestamp=utc_now_iso())
    for i, existing in enumerate(data.answers):
        if existing.id == record.id:
            data.answers[i] = record
            break
    else:
        data.answers.append(record)
    save_answer_data(path, data)
    return record
