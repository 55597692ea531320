# === FILE: site_snap/logger.py ===
"""Logging for SiteSnap.

Every module logs through the ``SiteSnap`` logger, either via the shared
:data:`logger` instance or ``logging.getLogger(LOGGER_NAME)``. The CLI calls
:func:`init_logging` once per run to apply ``--log-level`` and ``--log-file``.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

LOGGER_NAME: Final[str] = "SiteSnap"

_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(message)s"
_LOG_FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
_LOG_FILE_BACKUPS: Final[int] = 3


def init_logging(level: Union[int, str] = "INFO", log_file: Union[str, Path, None] = None) -> logging.Logger:
    """
    Points the ``SiteSnap`` logger at stdout (and *log_file*, rotated, if given).

    Calling it again replaces the previous handlers, so repeated runs in one
    process do not duplicate lines.
    """
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)
    for handler in list(lg.handlers):
        lg.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(_FORMAT)
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    lg.addHandler(console)

    if log_file is not None:
        rotating = RotatingFileHandler(
            str(log_file), maxBytes=_LOG_FILE_MAX_BYTES, backupCount=_LOG_FILE_BACKUPS, encoding="utf-8"
        )
        rotating.setFormatter(formatter)
        lg.addHandler(rotating)

    lg.propagate = False
    return lg


logger: logging.Logger = init_logging()

__all__ = ["LOGGER_NAME", "init_logging", "logger"]
