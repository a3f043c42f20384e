"""Prerequisite checks run before admission control.

A missing ``pg_dump`` binary or unusable S3 credentials would otherwise only
surface mid-run, after the disk check has listed the bucket and as a dump
failure that sweeps the working directory. Both are checked up front and
reported as FAILED(PREREQUISITES).
"""

from __future__ import annotations

import logging

from pgvault.core.errors import PrerequisiteError, RemoteStoreError
from pgvault.core.producer import DumpProducer, SupportsPreflight
from pgvault.storage.base import RemoteStore

logger = logging.getLogger(__name__)


def check_prerequisites(dumper: DumpProducer, store: RemoteStore, prefix: str) -> None:
    """Raise PrerequisiteError when the dump tool or the store is unusable.

    Dump tools that do not implement ``check_available`` are trusted as-is.
    """
    logger.info("Checking prerequisites...")

    if isinstance(dumper, SupportsPreflight):
        dumper.check_available()

    try:
        store.check_access(prefix)
    except RemoteStoreError as exc:
        raise PrerequisiteError(f"Remote store is not reachable: {exc}") from exc

    logger.info("Prerequisites satisfied")
