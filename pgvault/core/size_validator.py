"""Size Validator: coarse integrity check against the previous backup.

A new dump smaller than ``min_percentage`` percent of the newest remote
backup is treated as truncated or corrupt. The threshold is computed with
truncating integer division so a borderline backup is never rejected by
rounding.

This is a heuristic, not a content check: a logically corrupt dump of a
similar size passes.
"""

from __future__ import annotations

import logging

from pgvault.core.errors import SizeValidationError
from pgvault.core.units import format_bytes, percentage_of
from pgvault.models.artifacts import BackupArtifact
from pgvault.models.results import ValidationResult
from pgvault.storage.base import RemoteStore

logger = logging.getLogger(__name__)


class SizeValidator:
    """Compares a fresh artifact with the newest object in the Remote Store."""

    def validate(
        self,
        artifact: BackupArtifact,
        store: RemoteStore,
        prefix: str,
        min_percentage: int,
    ) -> ValidationResult:
        """Return a passed or failed ValidationResult; never raises on a small dump."""
        current = artifact.size_bytes
        logger.info("Current backup size: %s", format_bytes(current))

        last = store.last_object(prefix)
        if last is None:
            logger.info("No previous backup found. Accepting first backup.")
            return ValidationResult(passed=True, current_size=current)

        minimum = percentage_of(last.size_bytes, min_percentage)
        logger.info("Last backup size: %s (%s)", format_bytes(last.size_bytes), last.key)

        if current < minimum:
            logger.error(
                "Backup size validation failed! Current: %s, Last: %s "
                "(less than %d%% of last backup)",
                format_bytes(current),
                format_bytes(last.size_bytes),
                min_percentage,
            )
            return ValidationResult(
                passed=False,
                current_size=current,
                last_size=last.size_bytes,
                minimum_acceptable=minimum,
            )

        logger.info("Backup size validation passed")
        return ValidationResult(
            passed=True,
            current_size=current,
            last_size=last.size_bytes,
            minimum_acceptable=minimum,
        )

    def ensure_valid(
        self,
        artifact: BackupArtifact,
        store: RemoteStore,
        prefix: str,
        min_percentage: int,
    ) -> ValidationResult:
        """``validate`` that raises SizeValidationError on failure."""
        result = self.validate(artifact, store, prefix, min_percentage)
        if not result.passed:
            raise SizeValidationError(
                f"Backup is {format_bytes(result.current_size)}, below "
                f"{min_percentage}% of the last backup "
                f"({format_bytes(result.last_size or 0)}); "
                f"minimum {format_bytes(result.minimum_acceptable)}",
                current=result.current_size,
                last=result.last_size or 0,
                minimum=result.minimum_acceptable,
            )
        return result
