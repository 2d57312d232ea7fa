from __future__ import annotations

"""Rewrite broken ``#context:`` JSON inside stored chat questions."""

import json
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..context.extract import CONTEXT_MARKER, extract
from ..context.parser import parse
from .schema import ChatEntry
from .store import PathLike, load_chat_history, save_chat_history


@dataclass
class RepairReport:
    entries: List[ChatEntry]
    with_context: int = 0
    valid: int = 0
    errors: int = 0
    fixed: int = 0
    fixed_ids: List[str] = field(default_factory=list)
    output_path: Optional[Path] = None
    backup_path: Optional[Path] = None

    def summary(self) -> str:
        return (
            f"Processed {self.with_context} context items. "
            f"Valid: {self.valid}, Errors: {self.errors}, Fixed: {self.fixed}"
        )


def _strict_ok(span: str) -> bool:
    try:
        return isinstance(json.loads(span), dict)
    except (ValueError, RecursionError):
        return False


def repair_question(question: str) -> Optional[str]:
    """Return ``question`` with its context JSON repaired, or None if untouched."""
    ext = extract(question)
    if not ext.has_context or ext.json_span is None or _strict_ok(ext.json_span):
        return None
    result = parse(ext.json_span)
    if not result.ok or result.value is None:
        return None
    if result.value.hasParseError:
        fixed_json = json.dumps(result.value.model_dump(exclude_none=True), ensure_ascii=False)
    else:
        fixed_json = json.dumps(result.raw, ensure_ascii=False)
    prefix = f"{ext.before} " if ext.before else ""
    return f"{prefix}{CONTEXT_MARKER} {fixed_json} {ext.remainder or ''}".rstrip()


def repair_history(entries: List[ChatEntry]) -> RepairReport:
    report = RepairReport(entries=[])
    for entry in entries:
        ext = extract(entry.question)
        if not ext.has_context:
            report.entries.append(entry)
            continue
        report.with_context += 1
        if ext.json_span is not None and _strict_ok(ext.json_span):
            report.valid += 1
            report.entries.append(entry)
            continue
        report.errors += 1
        fixed = repair_question(entry.question)
        if fixed is None:
            print(f"[WARN] Could not repair context of entry {entry.id}")
            report.entries.append(entry)
            continue
        report.fixed += 1
        report.fixed_ids.append(entry.id)
        report.entries.append(entry.model_copy(update={"question": fixed}))
    return report


def repair_history_file(input_path: PathLike, output_path: Optional[PathLike] = None, *, backup: bool = True) -> RepairReport:
    """Repair every entry of a chat history file.

    Writes to ``output_path`` (default ``<input>.fixed``); a timestamped
    ``.bak-`` copy of the input is taken first when ``backup`` is set.
    """
    src = Path(input_path)
    dst = Path(output_path) if output_path else src.with_name(src.name + ".fixed")
    report = repair_history(load_chat_history(src))
    if backup:
        report.backup_path = src.with_name(f"{src.name}.bak-{datetime.now().strftime('%Y%m%d-%H%M%S')}")
        shutil.copyfile(src, report.backup_path)
    save_chat_history(dst, report.entries)
    report.output_path = dst
    print(report.summary())
    return report
