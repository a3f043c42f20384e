"""Disk Space Guard: admission control before the dump starts.

A dump can silently fill the local disk mid-write, and its size is unknown
until it completes. Admission therefore estimates need from the previous
remote backup's size times a safety multiplier, on top of an absolute
free-space floor that applies to every run, including the first one.

Each failing check gets at most one emergency cleanup followed by a single
re-measurement.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from pgvault.core.cleanup import emergency_cleanup
from pgvault.core.errors import InsufficientSpaceError
from pgvault.core.units import format_bytes
from pgvault.models.results import AdmissionDecision, DeleteOutcome, SpaceBudget
from pgvault.storage.base import RemoteStore

logger = logging.getLogger(__name__)

FreeSpaceProbe = Callable[[Path], int]
Cleanup = Callable[[Path], DeleteOutcome]


def available_bytes(path: Path) -> int:
    """Free bytes available on the filesystem holding *path*."""
    return shutil.disk_usage(path).free


class DiskSpaceGuard:
    """Gates backup creation on local free space.

    Parameters
    ----------
    probe:
        Returns available bytes for a directory. Defaults to
        ``shutil.disk_usage``.
    cleanup:
        Best-effort emergency cleanup for a directory. Must not raise.
    """

    def __init__(
        self,
        probe: FreeSpaceProbe = available_bytes,
        cleanup: Cleanup = emergency_cleanup,
    ) -> None:
        self._probe = probe
        self._cleanup = cleanup

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------

    def evaluate(
        self,
        target_dir: Path,
        minimum_free_bytes: int,
        expected_next_size_bytes: int,
        multiplier: int,
    ) -> AdmissionDecision:
        """Measure, clean up if needed, and decide Proceed or Insufficient.

        *expected_next_size_bytes* is the size of the newest remote backup,
        0 when none exists (first run: only the absolute floor applies).
        """
        logger.info("Checking disk space availability...")
        cleanup_attempts = 0

        available = self._probe(target_dir)
        logger.info("Available disk space: %s", format_bytes(available))

        # 1. Absolute floor
        if available < minimum_free_bytes:
            logger.error(
                "Insufficient disk space: %s available, minimum %s required",
                format_bytes(available),
                format_bytes(minimum_free_bytes),
            )
            available = self._cleanup_and_measure(target_dir)
            cleanup_attempts += 1
            if available < minimum_free_bytes:
                return self._insufficient(
                    available,
                    minimum_free_bytes,
                    0,
                    cleanup_attempts,
                    f"Still insufficient disk space after cleanup: "
                    f"{format_bytes(available)} available, "
                    f"minimum {format_bytes(minimum_free_bytes)}",
                )
            logger.info("Cleanup successful. Available space: %s", format_bytes(available))

        # 2. Budget estimated from the previous backup
        required = 0
        if expected_next_size_bytes > 0:
            required = expected_next_size_bytes * multiplier
            logger.info("Expected backup size: %s", format_bytes(expected_next_size_bytes))
            logger.info(
                "Required free space: %s (%dx buffer)", format_bytes(required), multiplier
            )
            if available < required:
                logger.error(
                    "Insufficient disk space for backup. Available: %s, Required: %s",
                    format_bytes(available),
                    format_bytes(required),
                )
                available = self._cleanup_and_measure(target_dir)
                cleanup_attempts += 1
                if available < required:
                    return self._insufficient(
                        available,
                        minimum_free_bytes,
                        required,
                        cleanup_attempts,
                        "Insufficient disk space even after cleanup: "
                        f"{format_bytes(available)} available, "
                        f"{format_bytes(required)} required",
                    )
                logger.info("Cleanup successful. Proceeding with backup.")
        else:
            logger.info(
                "No previous backup found. Proceeding with first backup (%s available).",
                format_bytes(available),
            )

        logger.info("Disk space check passed")
        return AdmissionDecision(
            proceed=True,
            budget=SpaceBudget(
                available_bytes=available,
                minimum_free_bytes=minimum_free_bytes,
                required_bytes=required,
            ),
            cleanup_attempts=cleanup_attempts,
        )

    def admit(
        self,
        target_dir: Path,
        minimum_free_bytes: int,
        expected_next_size_bytes: int,
        multiplier: int,
    ) -> AdmissionDecision:
        """``evaluate`` that raises InsufficientSpaceError instead of refusing."""
        decision = self.evaluate(
            target_dir, minimum_free_bytes, expected_next_size_bytes, multiplier
        )
        if not decision.proceed:
            budget = decision.budget
            raise InsufficientSpaceError(
                decision.reason,
                available=budget.available_bytes,
                required=max(budget.minimum_free_bytes, budget.required_bytes),
            )
        return decision

    def admit_for_store(
        self,
        target_dir: Path,
        store: RemoteStore,
        prefix: str,
        minimum_free_bytes: int,
        multiplier: int,
    ) -> AdmissionDecision:
        """Like ``admit`` but asks *store* for the expected next size."""
        expected = store.last_object_size(prefix)
        return self.admit(target_dir, minimum_free_bytes, expected, multiplier)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _cleanup_and_measure(self, target_dir: Path) -> int:
        logger.warning("Attempting emergency cleanup...")
        outcome = self._cleanup(target_dir)
        for error in outcome.errors:
            logger.warning("Emergency cleanup error: %s", error)
        return self._probe(target_dir)

    @staticmethod
    def _insufficient(
        available: int,
        minimum_free_bytes: int,
        required: int,
        cleanup_attempts: int,
        reason: str,
    ) -> AdmissionDecision:
        logger.error(reason)
        return AdmissionDecision(
            proceed=False,
            budget=SpaceBudget(
                available_bytes=available,
                minimum_free_bytes=minimum_free_bytes,
                required_bytes=required,
            ),
            cleanup_attempts=cleanup_attempts,
            reason=reason,
        )
