from __future__ import annotations

"""Merge answer records into the chat history by id."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, TypeVar, Union

from pydantic import ValidationError

from .schema import EMPTY_ANSWER_DATA, EMPTY_CHAT_HISTORY, AnswerData, AnswerRecord, ChatEntry, utc_now_iso
from .store import (
    PathLike,
    StoreFormatError,
    ensure_file_exists,
    load_answer_data,
    read_chat_documents,
    save_chat_history,
)

T = TypeVar("T")

AnswersInput = Union[AnswerData, Dict[str, Any], Iterable[Union[AnswerRecord, Dict[str, Any]]]]


@dataclass
class ReconcileResult:
    # entries that failed validation stay in place as the raw value read
    updated_entries: List[Union[ChatEntry, Any]]
    updated_count: int = 0
    diagnostics: List[str] = field(default_factory=list)


def _warn(result: ReconcileResult, msg: str) -> None:
    print(f"[WARN] {msg}")
    result.diagnostics.append(msg)


def _as_records(answers: AnswersInput) -> List[AnswerRecord]:
    if isinstance(answers, AnswerData):
        return list(answers.answers)
    if isinstance(answers, dict):
        return list(AnswerData.model_validate(answers).answers)
    return [a if isinstance(a, AnswerRecord) else AnswerRecord.model_validate(a) for a in answers]


def _latest_by_id(records: List[AnswerRecord]) -> Dict[str, AnswerRecord]:
    latest: Dict[str, AnswerRecord] = {}
    for rec in records:
        # later records replace earlier ones for the same id
        latest.pop(rec.id, None)
        latest[rec.id] = rec
    return latest


def reconcile(entries: Iterable[Union[ChatEntry, Dict[str, Any]]], answers: AnswersInput) -> ReconcileResult:
    """Copy answers onto the matching chat entries.

    Entries already answered with the same text are left alone, so running
    this twice with the same answers changes nothing the second time. Answer
    ids without a chat entry only produce a diagnostic, as do entries that
    are not valid chat entries; those are passed through unchanged. The
    inputs are not modified; changed entries are replaced in the returned list.
    """
    result = ReconcileResult(updated_entries=[])
    index: Dict[str, int] = {}
    for pos, item in enumerate(entries):
        if isinstance(item, ChatEntry):
            entry = item
        else:
            try:
                entry = ChatEntry.model_validate(item)
            except ValidationError as e:
                _warn(result, f"Chat entry at position {pos} is invalid and was left as is ({e.error_count()} errors)")
                result.updated_entries.append(item)
                continue
        index.setdefault(entry.id, pos)
        result.updated_entries.append(entry)

    for answer_id, rec in _latest_by_id(_as_records(answers)).items():
        pos = index.get(answer_id)
        if pos is None:
            _warn(result, f"Answer id '{answer_id}' has no matching chat entry")
            continue
        if not rec.answer.strip():
            _warn(result, f"Answer id '{answer_id}' is blank; skipped")
            continue
        entry = result.updated_entries[pos]
        if entry.is_answered and entry.answer == rec.answer:
            continue
        result.updated_entries[pos] = entry.model_copy(
            update={
                "answer": rec.answer,
                "status": "answered",
                "answeredAt": rec.timestamp or utc_now_iso(),
            }
        )
        result.updated_count += 1

    return result


def _load_or_default(
    loader: Callable[[Path], T],
    path: Path,
    default: Any,
    parse_default: Callable[[Any], T],
) -> T:
    try:
        return loader(path)
    except StoreFormatError as e:
        print(f"[WARN] {e}; using empty default for this cycle")
        return parse_default(default)


def update_chat_history(chat_history_file: PathLike, answer_data_file: PathLike) -> ReconcileResult:
    """Run one read-reconcile-write cycle against the two files.

    The chat history is only written back when at least one entry changed.
    Only a history that is not a JSON array stops the cycle from matching;
    single bad entries are skipped and written back as they were.
    """
    chat_path = ensure_file_exists(chat_history_file, EMPTY_CHAT_HISTORY)
    answer_path = ensure_file_exists(answer_data_file, EMPTY_ANSWER_DATA)

    entries = _load_or_default(read_chat_documents, chat_path, EMPTY_CHAT_HISTORY, list)
    answers = _load_or_default(load_answer_data, answer_path, EMPTY_ANSWER_DATA, AnswerData.model_validate)

    result = reconcile(entries, answers)
    if result.updated_count > 0:
        save_chat_history(chat_path, result.updated_entries)
        print(f"Updated {result.updated_count} chat entr{'y' if result.updated_count == 1 else 'ies'} in {chat_path}")
    return result
