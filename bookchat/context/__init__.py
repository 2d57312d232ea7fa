from .extract import CONTEXT_MARKER, Extraction, extract
from .repair import REPAIR_PASSES, UNKNOWN_VALUE, repair_json
from .schema import ContextPayload, UserAnswer
from .parser import ParseResult, extract_fields, parse, parse_context
from .display import DisplayInfo, format_display

__all__ = [
    "CONTEXT_MARKER",
    "Extraction",
    "extract",
    "REPAIR_PASSES",
    "UNKNOWN_VALUE",
    "repair_json",
    "ContextPayload",
    "UserAnswer",
    "ParseResult",
    "extract_fields",
    "parse",
    "parse_context",
    "DisplayInfo",
    "format_display",
]
