from __future__ import annotations

"""Configuration loading and validation for bookchat.

This module loads YAML configuration, applies defaults and environment
overrides, and resolves the data file paths used by the store and poller.
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

MIN_INTERVAL_MS = 100
DEFAULT_INTERVAL_MS = 2000

# environment variable -> data section key
ENV_OVERRIDES = {
    "DATA_DIR": "dir",
    "CHAT_HISTORY_FILE": "chat_history_file",
    "ANSWER_DATA_FILE": "answer_data_file",
    "PROGRESS_FILE": "progress_file",
}


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        print(f"ERROR: Config file not found: {path}", file=sys.stderr)
        sys.exit(1)


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML or defaults.

    Args:
        path: Optional path to a YAML config. If None, use package defaults.

    Returns:
        A dictionary with configuration values.
    """
    if path:
        cfg = _load_yaml(Path(path))
    else:
        default_path = Path(__file__).with_name("defaults.yml")
        cfg = _load_yaml(default_path)
    return cfg


def validate_config(cfg: Dict[str, Any], env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Apply defaults, environment overrides and sanity checks.

    Args:
        cfg: The raw configuration dictionary.
        env: Environment mapping; ``os.environ`` when None.

    Returns:
        The validated configuration with absolute ``Path`` values under
        ``data["paths"]``.
    """
    env = os.environ if env is None else env

    # Shallow defaults for missing sections
    cfg.setdefault("data", {})
    cfg.setdefault("poller", {})
    cfg.setdefault("repair", {})

    data = cfg["data"]
    poller = cfg["poller"]
    repair = cfg["repair"]

    data.setdefault("dir", "./data")
    data.setdefault("chat_history_file", "chat_history.json")
    data.setdefault("answer_data_file", "answer_data.json")
    data.setdefault("progress_file", "progress.json")

    poller.setdefault("interval_ms", DEFAULT_INTERVAL_MS)
    repair.setdefault("backup", True)

    for var, key in ENV_OVERRIDES.items():
        if env.get(var):
            data[key] = env[var]

    try:
        interval = int(poller.get("interval_ms"))
    except (TypeError, ValueError):
        print(f"WARNING: Invalid poller.interval_ms '{poller.get('interval_ms')}', using {DEFAULT_INTERVAL_MS}.")
        interval = DEFAULT_INTERVAL_MS
    if interval < MIN_INTERVAL_MS:
        print(f"WARNING: poller.interval_ms {interval} is below {MIN_INTERVAL_MS}, using {MIN_INTERVAL_MS}.")
        interval = MIN_INTERVAL_MS
    poller["interval_ms"] = interval

    repair["backup"] = bool(repair.get("backup"))

    # File names are relative to the data dir; absolute paths are kept as given
    data_dir = Path(str(data["dir"])).expanduser()
    data["paths"] = {
        key: (data_dir / str(data[key]).strip()).resolve()
        for key in ("chat_history_file", "answer_data_file", "progress_file")
    }
    return cfg
