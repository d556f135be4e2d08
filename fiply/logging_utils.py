"""
Logging setup for the fiply CLI.

Library modules only do `logger = logging.getLogger(__name__)`; the entry
point calls configure_logging() once.
"""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

_CONSOLE_FMT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_FILE_FMT = "%(asctime)s %(levelname)-7s %(name)s [%(funcName)s:%(lineno)d] %(message)s"
_HANDLER_TAG = "_fiply_handler"

_logging_configured = False


def configure_logging(
    level: str = "WARNING",
    log_file: Optional[str] = None,
    file_level: str = "DEBUG",
    force: bool = False,
) -> None:
    """
    Install a stderr handler (and optionally a file handler) on the root logger.

    LOG_LEVEL and LOG_FILE environment variables override the arguments.
    Later calls are no-ops unless force=True.
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    level = os.getenv("LOG_LEVEL", level).upper()
    if log_file is None:
        log_file = os.getenv("LOG_FILE")

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for handler in root.handlers[:]:
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    # stdout is kept for the user-facing progress lines
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, level, logging.WARNING))
    console_handler.setFormatter(logging.Formatter(_CONSOLE_FMT, datefmt="%H:%M:%S"))
    setattr(console_handler, _HANDLER_TAG, True)
    root.addHandler(console_handler)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(getattr(logging, file_level.upper(), logging.DEBUG))
        file_handler.setFormatter(logging.Formatter(_FILE_FMT))
        setattr(file_handler, _HANDLER_TAG, True)
        root.addHandler(file_handler)

    # requests/urllib3/spotipy are chatty at DEBUG
    for noisy in ("urllib3", "spotipy"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    _logging_configured = True
