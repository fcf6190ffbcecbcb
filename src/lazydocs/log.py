"""Logging setup: rich console output plus an append-only log file."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "lazydocs"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
ISO_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def default_log_file() -> Path:
    """``~/.lazydocs-logs/lazydocs.log`` unless ``LAZYDOCS_LOG_DIR`` is set."""
    base = os.environ.get("LAZYDOCS_LOG_DIR")
    log_dir = Path(base).expanduser() if base else Path.home() / ".lazydocs-logs"
    return log_dir / "lazydocs.log"


def setup_logging(
    verbose: bool = False,
    log_file: str | Path | None = None,
) -> logging.Logger:
    """Configure the ``lazydocs`` logger.

    Warnings (or debug output with ``verbose``) go to stderr through rich;
    everything at INFO and above is appended to ``log_file`` when given.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=verbose,
        markup=False,
    )
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        except OSError as e:
            logger.warning("Cannot open log file %s: %s", path, e)
        else:
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=ISO_DATEFMT))
            file_handler.setLevel(logging.INFO)
            logger.addHandler(file_handler)

    return logger
