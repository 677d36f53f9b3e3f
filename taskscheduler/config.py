from __future__ import annotations

import os
from pathlib import Path

from .similarity import DEFAULT_THRESHOLD


def default_db_path() -> Path:
    """
    Default per-user database:
      ~/.taskscheduler/taskscheduler.db

    Override with TASKSCHEDULER_DB env var or --db CLI option.
    """
    env = os.getenv("TASKSCHEDULER_DB")
    if env:
        return Path(env).expanduser().resolve()

    return (Path.home() / ".taskscheduler" / "taskscheduler.db").resolve()


def default_similarity_threshold() -> float:
    raw = os.getenv("TASKSCHEDULER_SIMILARITY_THRESHOLD")
    if raw is None or raw.strip() == "":
        return DEFAULT_THRESHOLD
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_THRESHOLD
    return value if 0.0 <= value <= 1.0 else DEFAULT_THRESHOLD


def default_log_level() -> str:
    return os.getenv("TASKSCHEDULER_LOG_LEVEL", "WARNING").strip().upper() or "WARNING"
