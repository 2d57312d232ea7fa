from __future__ import annotations

"""Chat history summary: one DataFrame row per entry, plus counts for the CLI."""

from typing import Any, Dict, Iterable

import pandas as pd

from ..context.parser import parse_context
from ..history.schema import ChatEntry

COLUMNS = {
    "id": "string",
    "status": "category",
    "has_context": "bool",
    "problem_id": "string",
    "category": "string",
    "has_parse_error": "bool",
    "timestamp": "string",
    "answered_at": "string",
}


def history_frame(entries: Iterable[ChatEntry]) -> pd.DataFrame:
    """Flatten chat entries (and their parsed context) into a DataFrame."""
    rows = []
    for e in entries:
        ext, res = parse_context(e.question)
        payload = res.value if res.ok else None
        rows.append(
            {
                "id": e.id,
                "status": e.status,
                "has_context": bool(ext.has_context),
                "problem_id": payload.problemId if payload else None,
                "category": payload.category if payload else None,
                "has_parse_error": bool(payload.hasParseError) if payload else ext.has_context,
                "timestamp": e.timestamp,
                "answered_at": e.answeredAt,
            }
        )
    df = pd.DataFrame(rows, columns=list(COLUMNS.keys()))
    return df.astype(COLUMNS)


def summarize(df: pd.DataFrame) -> Dict[str, Any]:
    """Totals by status and per-category answered/pending counts."""
    total = int(len(df))
    answered = int((df["status"].astype("string") == "answered").sum()) if total else 0
    per_category: Dict[str, Dict[str, int]] = {}
    ctx = df[df["has_context"]] if total else df
    if not ctx.empty:
        cats = ctx["category"].fillna("(none)")
        grouped = ctx.assign(category=cats).groupby(["category", ctx["status"].astype("string")]).size()
        for (cat, status), n in grouped.items():
            per_category.setdefault(str(cat), {"answered": 0, "pending": 0})[str(status)] = int(n)
    return {
        "total": total,
        "answered": answered,
        "pending": total - answered,
        "with_context": int(df["has_context"].sum()) if total else 0,
        "parse_errors": int(df["has_parse_error"].sum()) if total else 0,
        "per_category": per_category,
    }


def format_summary(summary: Dict[str, Any]) -> str:
    """Return a human-readable summary."""
    lines = [
        f"Total: {summary.get('answered', 0)}/{summary.get('total', 0)} answered",
        f"With context: {summary.get('with_context', 0)} (parse errors: {summary.get('parse_errors', 0)})",
    ]
    per = summary.get("per_category", {})
    for cat in sorted(per.keys()):
        c = per[cat]
        lines.append(f"{cat}: {c.get('answered', 0)} answered, {c.get('pending', 0)} pending")
    return "\n".join(lines)
