"""Logging configuration for the clipring CLI."""
from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(levelname)s: %(message)s"
FILE_LOG_FORMAT = "%(asctime)s %(process)d %(name)s %(levelname)s: %(message)s"


def configure_logging(verbose: bool, log_file: Path | None = None) -> None:
    """Configure root logging for the current process.

    Args:
        verbose: If True, set DEBUG level; otherwise WARNING level.
        log_file: Optional file receiving the same records with
            timestamps, for the long-running server and monitor.

    Errors are always printed to stderr regardless of verbosity.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
        handlers.append(file_handler)
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)
