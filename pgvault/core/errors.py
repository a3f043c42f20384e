"""Backup failure taxonomy.

Every stage error is terminal for the run. Each exception carries the
FailureReason the Orchestrator records when it moves the run to FAILED.
Partial rotation is deliberately absent: it is reported through
RotationResult.errors and never raised.
"""

from __future__ import annotations

from pgvault.models.pipeline import FailureReason


class BackupError(RuntimeError):
    """Base class for all pipeline failures."""

    reason: FailureReason | None = None


class ConfigurationError(BackupError):
    """Raised when required settings are missing or invalid."""

    reason = FailureReason.CONFIGURATION


class PrerequisiteError(BackupError):
    """Raised when the dump tool or the Remote Store is unusable before the run."""

    reason = FailureReason.PREREQUISITES


class InsufficientSpaceError(BackupError):
    """Raised when local free space stays below the budget after cleanup."""

    reason = FailureReason.INSUFFICIENT_SPACE

    def __init__(self, message: str, *, available: int, required: int) -> None:
        super().__init__(message)
        self.available = available
        self.required = required


class DumpFailedError(BackupError):
    """Raised when the dump tool reports failure or cannot be run."""

    reason = FailureReason.DUMP_FAILED


class EmptyArtifactError(BackupError):
    """Raised when the dump tool claims success but left no usable file."""

    reason = FailureReason.EMPTY_ARTIFACT


class SizeValidationError(BackupError):
    """Raised when a new dump is too small compared to the previous one."""

    reason = FailureReason.SIZE_VALIDATION

    def __init__(self, message: str, *, current: int, last: int, minimum: int) -> None:
        super().__init__(message)
        self.current = current
        self.last = last
        self.minimum = minimum


class UploadFailedError(BackupError):
    """Raised when the Remote Store rejects or loses an upload."""

    reason = FailureReason.UPLOAD_FAILED


class RemoteStoreError(BackupError):
    """Raised by Remote Store implementations on any list/put/delete failure.

    Carries no reason of its own: the Orchestrator attributes it to the stage
    that was talking to the store.
    """
