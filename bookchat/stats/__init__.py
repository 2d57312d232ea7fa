from .stats import history_frame, summarize, format_summary

__all__ = ["history_frame", "summarize", "format_summary"]
