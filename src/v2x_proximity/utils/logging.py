"""Package logger for the detection stack."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

LOGGER_NAME = "v2x_proximity"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def _attach(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)


def configure_logger(
    log_path: Optional[Path] = None,
    *,
    console: bool = True,
    level: int = logging.INFO,
) -> logging.Logger:
    """Route ``v2x_proximity`` records to ``log_path`` and/or stderr.

    Handlers from an earlier call are closed first, so a long-running process
    can switch log files between sessions.
    """
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False

    while logger.handlers:
        stale = logger.handlers[-1]
        logger.removeHandler(stale)
        stale.close()

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _attach(logger, logging.FileHandler(log_path, encoding="utf-8"), level)
    if console:
        _attach(logger, logging.StreamHandler(), level)
    return logger
