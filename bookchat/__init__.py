"""bookchat package initialization.

Back-end core of the bookkeeping practice chat: context extraction and JSON
repair for chat questions, and answer reconciliation over flat JSON files.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .context import extract, format_display, parse, parse_context  # noqa: E402
from .history import reconcile, start_polling, stop_polling  # noqa: E402

__all__ = [
    "__version__",
    "extract",
    "parse",
    "parse_context",
    "format_display",
    "reconcile",
    "start_polling",
    "stop_polling",
]
