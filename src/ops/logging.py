"""
Process-wide logging for the live loop, the web server and model runtimes.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Per-request and per-inference chatter; kept at WARNING unless debugging
QUIET_LOGGERS = ("uvicorn.access", "ultralytics")


def quiet_loggers(names: Iterable[str] = QUIET_LOGGERS, level: int = logging.WARNING) -> None:
    for name in names:
        logging.getLogger(name).setLevel(level)


def setup_logging(log_path: str, log_level: str) -> None:
    """
    Log to ``log_path`` and the console at ``log_level``.

    Safe to call again (e.g. from tests); earlier handlers are replaced.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    log_dir = os.path.dirname(log_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(),
        ],
        force=True,
    )

    if level > logging.DEBUG:
        quiet_loggers()
    logging.debug(f"Logging to {log_path} at {logging.getLevelName(level)}")
