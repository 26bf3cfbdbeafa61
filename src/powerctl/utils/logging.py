from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal

import coloredlogs  # type: ignore[import]

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]

CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s [%(name)s] %(levelname)s - %(message)s"
TIME_FORMAT = "%H:%M:%S"


def setup_logging(level: LogLevel | None = None, log_file: Path | None = None) -> None:
    """Colored console logging, plus a plain file log when ``log_file`` is set.

    Background work (scheduled and group actions) only reports through the
    log, so long-running commands usually want the file.
    """
    resolved = (level or os.environ.get("LOGLEVEL", "INFO")).upper()

    coloredlogs.install(level=resolved, fmt=CONSOLE_FORMAT, datefmt=TIME_FORMAT)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(FILE_FORMAT))
        handler.setLevel(resolved)
        logging.getLogger().addHandler(handler)

    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
