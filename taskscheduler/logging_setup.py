from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO, Union


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep taskscheduler records; let third-party loggers through only at ERROR+.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "taskscheduler" or record.name.startswith("taskscheduler."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(level: Union[int, str] = logging.WARNING, stream: Optional[TextIO] = None) -> None:
    """
    Configure the root logger with a single filtered stderr handler.
    Call once, early in main().
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    root = logging.getLogger()
    root.setLevel(level)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(stream if stream is not None else sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    logging.captureWarnings(True)
