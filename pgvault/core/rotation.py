"""Retention Rotation Engine: keep only the newest ``keep_count`` backups.

Runs only after a successful upload, so a failed run can never remove the
last good backup. Deletions are independent: one failure is recorded and
the remaining excess objects are still deleted. An undeleted old object
costs storage, never correctness.
"""

from __future__ import annotations

import logging

from pgvault.core.errors import RemoteStoreError
from pgvault.models.results import RotationResult
from pgvault.storage.base import RemoteStore, sort_by_recency

logger = logging.getLogger(__name__)


class RotationEngine:
    """Enforces a fixed-count retention policy over one store prefix."""

    def rotate(self, store: RemoteStore, prefix: str, keep_count: int) -> RotationResult:
        """Delete the oldest objects under *prefix* beyond *keep_count*.

        Objects are ordered by ``(last_modified, key)``; only objects returned
        by the prefix-scoped listing are ever touched.
        """
        if keep_count < 1:
            raise ValueError(f"keep_count must be >= 1, got {keep_count}")

        logger.info("Starting backup rotation")
        try:
            objects = sort_by_recency(store.list(prefix))
        except RemoteStoreError as exc:
            logger.error("Could not list backups for rotation: %s", exc)
            return RotationResult(errors=[str(exc)])

        total = len(objects)
        if total == 0:
            logger.info("No backups found under %s", prefix)
            return RotationResult()

        logger.info("Found %d backup(s) under %s", total, prefix)
        excess = max(0, total - keep_count)
        if excess == 0:
            logger.info("No rotation needed. Keeping all %d backup(s)", total)
            return RotationResult(kept=total)

        logger.info("Removing %d old backup(s)", excess)
        deleted = []
        errors: list[str] = []
        for obj in objects[:excess]:
            logger.info("Deleting: %s", obj.key)
            try:
                store.delete(obj.key)
            except RemoteStoreError as exc:
                errors.append(f"{obj.key}: {exc}")
                logger.error("Failed to delete: %s (%s)", obj.key, exc)
                continue
            deleted.append(obj)

        if errors:
            logger.warning(
                "Partial rotation: %d of %d old backup(s) could not be deleted",
                len(errors),
                excess,
            )
        return RotationResult(deleted=deleted, kept=total - len(deleted), errors=errors)
