"""Best-effort local file deletion.

``delete_all`` is the single delete loop used by emergency cleanup, log
purging and artifact removal. It never raises for individual files: every
failure is collected into the returned DeleteOutcome and logged.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from pathlib import Path

from pgvault.models.results import DeleteOutcome

logger = logging.getLogger(__name__)

# Leftovers of interrupted or failed dumps in the working directory.
TRANSIENT_PATTERNS: tuple[str, ...] = ("*.backup", "*.sql", "*.sql.gz")

LOG_PATTERN = "backup_*.log"


def delete_all(
    directory: Path,
    patterns: Iterable[str],
    predicate: Callable[[Path], bool] | None = None,
) -> DeleteOutcome:
    """Delete regular files in *directory* matching any glob in *patterns*.

    *predicate*, when given, must also accept a file for it to be deleted.
    A missing directory or an empty match set is not an error.
    """
    if not directory.is_dir():
        return DeleteOutcome()

    candidates: set[Path] = set()
    for pattern in patterns:
        candidates.update(directory.glob(pattern))

    count = 0
    errors: list[str] = []
    for path in sorted(candidates):
        try:
            if not path.is_file():
                continue
            if predicate is not None and not predicate(path):
                continue
            path.unlink()
            count += 1
            logger.debug("Deleted %s", path)
        except FileNotFoundError:
            continue
        except OSError as exc:
            errors.append(f"{path}: {exc}")
            logger.warning("Could not delete %s: %s", path, exc)

    return DeleteOutcome(count=count, errors=errors)


def remove_file(path: Path) -> bool:
    """Remove a single file if present. Returns True when something was deleted."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        logger.warning("Could not delete %s: %s", path, exc)
        return False
    return True


def emergency_cleanup(work_dir: Path) -> DeleteOutcome:
    """Reclaim space by removing transient dump files from *work_dir*."""
    logger.warning(
        "Emergency cleanup triggered - removing temporary backup files from %s",
        work_dir,
    )
    outcome = delete_all(work_dir, TRANSIENT_PATTERNS)
    logger.info(
        "Emergency cleanup removed %d file(s) (%d error(s))",
        outcome.count,
        len(outcome.errors),
    )
    return outcome


def purge_old_logs(
    log_dir: Path,
    retention_days: int,
    *,
    now: float | None = None,
) -> DeleteOutcome:
    """Remove run log files whose mtime is older than *retention_days*."""
    cutoff = (now if now is not None else time.time()) - retention_days * 86400

    def _expired(path: Path) -> bool:
        return path.stat().st_mtime < cutoff

    logger.info("Cleaning up old logs (keeping last %d days)", retention_days)
    outcome = delete_all(log_dir, (LOG_PATTERN,), predicate=_expired)
    if outcome.count:
        logger.info("Removed %d expired log file(s)", outcome.count)
    return outcome
