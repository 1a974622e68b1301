"""Logging configuration shared by the API process and scripts."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Install a stream handler on the root logger at the requested level.

    Safe to call more than once; an existing root handler is reused and only
    the level is updated.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)

    # SQL echo is controlled by SQL_DEBUG, keep the engine logger quiet otherwise.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
