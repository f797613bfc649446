"""Process-wide logging setup.

Components never configure logging themselves; they accept an injected
:class:`logging.Logger` and default to a child of the ``casdoc`` logger.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOGGER_NAME = "casdoc"


def configure_logging(log_path: Path, level: int = logging.INFO) -> logging.Logger:
    """Duplicate all ``casdoc`` log output to *log_path* and standard output.

    The log file is truncated on every call.  Handlers installed by a previous
    call are closed and replaced, so repeated calls never double the output.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter("%(message)s")

    file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    logger.setLevel(level)
    logger.propagate = False
    return logger
