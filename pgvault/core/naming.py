"""Artifact naming with explicit collision handling.

Names are derived from the UTC creation time with second precision. Two runs
in the same second would still collide, so a candidate name is checked
against the remote listing and the working directory, and a numeric suffix
is appended until it is free. Existing backups are never overwritten.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

ARTIFACT_SUFFIX = ".backup"
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def base_name(database: str, created_at: datetime) -> str:
    """``<database>_<YYYY-MM-DD_HH-MM-SS>`` with no extension."""
    return f"{database}_{created_at.strftime(TIMESTAMP_FORMAT)}"


def unique_artifact_name(
    database: str,
    created_at: datetime,
    *,
    taken_keys: Collection[str],
    prefix: str,
    work_dir: Path,
) -> str:
    """Return a ``.backup`` file name unused both remotely and locally.

    *taken_keys* are full remote keys (including *prefix*).
    """
    stem = base_name(database, created_at)
    candidate = f"{stem}{ARTIFACT_SUFFIX}"
    attempt = 0
    while f"{prefix}{candidate}" in taken_keys or (work_dir / candidate).exists():
        attempt += 1
        candidate = f"{stem}-{attempt}{ARTIFACT_SUFFIX}"

    if attempt:
        logger.warning(
            "Backup name %s%s already in use; using %s instead",
            stem,
            ARTIFACT_SUFFIX,
            candidate,
        )
    return candidate
