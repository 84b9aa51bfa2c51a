# Andy Zhao
"""Logging utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Optional
import logging
import os
import sys

from ..robust.config import debug_enabled


def _has_file_handler(logger: logging.Logger, log_file: str) -> bool:
    target = os.path.abspath(log_file)
    return any(isinstance(h, logging.FileHandler) and h.baseFilename == target for h in logger.handlers)


def setup_logger(name: str = "robustgeom", log_level: Optional[int] = None,
                 log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach a console (and optional file) handler to the `name` logger.

    log_level defaults to DEBUG when ROBUSTGEOM_DEBUG=1, INFO otherwise.
    Calling it twice does not duplicate handlers.
    """
    if log_level is None:
        log_level = logging.DEBUG if debug_enabled() else logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if not any(getattr(h, "_robustgeom_console", False) for h in logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler._robustgeom_console = True  # type: ignore[attr-defined]
        logger.addHandler(console_handler)

    if log_file and not _has_file_handler(logger, log_file):
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
