"""Run logging: one timestamped log file per run plus stderr."""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_PREFIX = "backup_"

_PACKAGE_LOGGER = "pgvault"


def log_file_for(log_dir: Path, run_started: datetime) -> Path:
    """Return ``log_dir/backup_<YYYY-MM-DD_HH-MM-SS>.log``."""
    return log_dir / f"{LOG_FILE_PREFIX}{run_started:%Y-%m-%d_%H-%M-%S}.log"


def configure_logging(
    log_dir: Path,
    level: str = "INFO",
    run_started: datetime | None = None,
) -> Path:
    """Attach the run's file and stderr handlers to the ``pgvault`` logger.

    Replaces handlers left over from a previous call so repeated runs in one
    process do not duplicate output. Returns the log file path.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_file_for(log_dir, run_started or datetime.now())

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(str(log_file), mode="a", encoding="utf-8")
    file_handler.setFormatter(formatter)
    package_logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    package_logger.addHandler(stream_handler)

    package_logger.setLevel(level.upper())
    package_logger.propagate = False
    return log_file
