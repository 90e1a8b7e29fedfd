"""Logging setup for the ``tfs2git`` command line tool.

Environment Variables:
    TFS2GIT_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
"""

from __future__ import annotations

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger with a single stderr handler.

    ``level`` wins over ``TFS2GIT_LOG_LEVEL``. Unknown level names fall back
    to INFO.
    """
    name = (level or os.getenv("TFS2GIT_LOG_LEVEL", "INFO")).upper()
    resolved = logging.getLevelName(name)
    if not isinstance(resolved, int):
        resolved = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(handler)

    # GitPython logs every command at DEBUG
    logging.getLogger("git").setLevel(max(resolved, logging.INFO))
