from .schema import STATUSES, ChatEntry, AnswerRecord, AnswerData
from .store import (
    StoreFormatError,
    ensure_file_exists,
    load_chat_history,
    read_chat_documents,
    save_chat_history,
    load_answer_data,
    save_answer_data,
    add_question,
    add_answer,
    find_entry,
    delete_entry,
)
from .reconcile import ReconcileResult, reconcile, update_chat_history
from .poller import AnswerPoller, start_polling, stop_polling
from .repair import RepairReport, repair_history, repair_history_file

__all__ = [
    "STATUSES",
    "ChatEntry",
    "AnswerRecord",
    "AnswerData",
    "StoreFormatError",
    "ensure_file_exists",
    "load_chat_history",
    "read_chat_documents",
    "save_chat_history",
    "load_answer_data",
    "save_answer_data",
    "add_question",
    "add_answer",
    "find_entry",
    "delete_entry",
    "ReconcileResult",
    "reconcile",
    "update_chat_history",
    "AnswerPoller",
    "start_polling",
    "stop_polling",
    "RepairReport",
    "repair_history",
    "repair_history_file",
]
