from __future__ import annotations

"""Learner progress persistence: one JSON object keyed by problem id.

The front-end owns the shape of each value; this module only loads, merges
(shallow, top-level keys) and saves the document.
"""

import json
from pathlib import Path
from typing import Any, Dict

from ..history.store import PathLike, StoreFormatError, write_json


def _load(path: PathLike, *, strict: bool = False) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}
    try:
        with p.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        if strict:
            raise StoreFormatError(f"{p}: invalid JSON ({e})") from e
        print(f"[WARN] Progress file {p} is not valid JSON ({e}); starting empty")
        return {}
    if not isinstance(data, dict):
        if strict:
            raise StoreFormatError(f"{p}: expected a JSON object, got {type(data).__name__}")
        print(f"[WARN] Progress file {p} does not hold an object; starting empty")
        return {}
    return data


def load_progress(path: PathLike) -> Dict[str, Any]:
    """Load progress data, creating an empty file on first use."""
    p = Path(path)
    if not p.exists():
        save_progress(p, {})
        return {}
    return _load(p)


def save_progress(path: PathLike, data: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    write_json(p, data)


def update_progress(path: PathLike, patch: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``patch`` into the stored progress (top-level keys replace) and save.

    Raises StoreFormatError, leaving the file alone, when the existing file
    cannot be read as a JSON object.
    """
    if not isinstance(patch, dict):
        raise TypeError("progress patch must be a dict")
    data = _load(path, strict=True)
    data.update(patch)
    save_progress(path, data)
    return data
