from __future__ import annotations

"""CLI entry point for bookchat."""

import argparse
import json
import sys
import time
from typing import Any, Dict, List, Optional

from . import __version__
from .config.config import load_config, validate_config
from .context.display import format_display
from .history.poller import start_polling, stop_polling
from .history.reconcile import update_chat_history
from .history.repair import repair_history_file
from .history.schema import EMPTY_CHAT_HISTORY
from .history.store import (
    StoreFormatError,
    add_answer,
    add_question,
    delete_entry,
    ensure_file_exists,
    load_chat_history,
)
from .progress.persist import load_progress, update_progress
from .stats.stats import format_summary, history_frame, summarize


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="bookchat", description="Bookkeeping practice chat back-end")
    p.add_argument("--config", type=str, default=None, help="Path to YAML config")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    sub = p.add_subparsers(dest="command")

    poll = sub.add_parser("poll", help="Merge answers into the chat history on an interval")
    poll.add_argument("--interval-ms", type=int, default=None, help="Override poller.interval_ms")

    sub.add_parser("reconcile", help="Run a single reconcile cycle")

    rep = sub.add_parser("repair", help="Repair broken #context JSON in the chat history")
    rep.add_argument("--input", type=str, default=None, help="Chat history file (default: configured)")
    rep.add_argument("--output", type=str, default=None, help="Output file (default: <input>.fixed)")
    rep.add_argument("--no-backup", action="store_true", help="Do not write a .bak copy first")

    show = sub.add_parser("show", help="Print chat entries as displayed to the learner")
    show.add_argument("--pending", action="store_true", help="Only pending entries")

    ask = sub.add_parser("ask", help="Add a new question to the chat history")
    ask.add_argument("question", type=str)

    ans = sub.add_parser("answer", help="Write an answer record for a question id")
    ans.add_argument("id", type=str)
    ans.add_argument("answer", type=str)

    rm = sub.add_parser("delete", help="Delete a chat entry by id")
    rm.add_argument("id", type=str)

    sub.add_parser("stats", help="Summarize the chat history")

    prog = sub.add_parser("progress", help="Show or update the progress file")
    prog.add_argument("--set", type=str, default=None, help="JSON object merged into the progress data")

    return p.parse_args(argv)


def _cmd_poll(paths: Dict[str, Any], interval_ms: int) -> None:
    handle = start_polling(paths["chat_history_file"], paths["answer_data_file"], interval_ms)
    try:
        while handle.is_running():
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass
    finally:
        stop_polling(handle)
        handle.wait_idle()


def _cmd_show(paths: Dict[str, Any], pending_only: bool) -> None:
    chat_path = ensure_file_exists(paths["chat_history_file"], EMPTY_CHAT_HISTORY)
    for entry in load_chat_history(chat_path):
        if pending_only and entry.is_answered:
            continue
        info = format_display(entry.question)
        print("-" * 52)
        flag = " (partial context)" if info.has_parse_error else ""
        print(f"[{entry.id}] {entry.status}{flag}")
        print(info.display_text or "")
        if entry.answer:
            print("\n> " + entry.answer.replace("\n", "\n> "))


def cli(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    if args.version:
        print(f"bookchat {__version__}")
        sys.exit(0)

    cfg = validate_config(load_config(args.config))
    paths = cfg["data"]["paths"]

    try:
        if args.command == "poll":
            interval = args.interval_ms if args.interval_ms is not None else cfg["poller"]["interval_ms"]
            _cmd_poll(paths, int(interval))
        elif args.command == "reconcile":
            result = update_chat_history(paths["chat_history_file"], paths["answer_data_file"])
            print(f"Updated entries: {result.updated_count}")
        elif args.command == "repair":
            src = args.input or paths["chat_history_file"]
            backup = cfg["repair"]["backup"] and not args.no_backup
            report = repair_history_file(src, args.output, backup=backup)
            if report.backup_path is not None:
                print(f"Backup: {report.backup_path}")
            print(f"Written to {report.output_path}")
        elif args.command == "show":
            _cmd_show(paths, args.pending)
        elif args.command == "ask":
            entry = add_question(paths["chat_history_file"], args.question)
            print(f"Added question {entry.id}")
        elif args.command == "answer":
            record = add_answer(paths["answer_data_file"], args.id, args.answer)
            print(f"Saved answer for {record.id}")
        elif args.command == "delete":
            if not delete_entry(paths["chat_history_file"], args.id):
                print(f"ERROR: No chat entry with id {args.id}", file=sys.stderr)
                sys.exit(1)
            print(f"Deleted {args.id}")
        elif args.command == "stats":
            chat_path = ensure_file_exists(paths["chat_history_file"], EMPTY_CHAT_HISTORY)
            print(format_summary(summarize(history_frame(load_chat_history(chat_path)))))
        elif args.command == "progress":
            if args.set:
                data = update_progress(paths["progress_file"], json.loads(args.set))
            else:
                data = load_progress(paths["progress_file"])
            print(json.dumps(data, indent=2, ensure_ascii=False))
        else:
            print("ERROR: no command given (see --help)", file=sys.stderr)
            sys.exit(2)
    except (StoreFormatError, ValueError, TypeError, FileNotFoundError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    cli()
