"""Backup orchestrator: the state machine that sequences a backup run.

    START -> SPACE_CHECKED -> PRODUCED -> VALIDATED -> UPLOADED -> ROTATED -> DONE

with FAILED reachable from every non-terminal state. Prerequisite checks
(pg_dump present, Remote Store reachable) run before admission and fail the
run from START with FAILED(PREREQUISITES).

The Orchestrator wires the DiskSpaceGuard, BackupProducer, SizeValidator,
Remote Store and RotationEngine together. Every stage failure is terminal
for the run: retrying is left to the scheduler's next trigger. Whatever the
outcome, no local artifact file survives the run.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from pgvault.config import BackupConfig
from pgvault.core.cleanup import purge_old_logs, remove_file
from pgvault.core.disk_guard import DiskSpaceGuard
from pgvault.core.errors import BackupError, RemoteStoreError, UploadFailedError
from pgvault.core.naming import unique_artifact_name
from pgvault.core.preflight import check_prerequisites
from pgvault.core.producer import BackupProducer, DumpProducer, PgDumpProducer
from pgvault.core.rotation import RotationEngine
from pgvault.core.size_validator import SizeValidator
from pgvault.core.state_machine import PipelineMachine
from pgvault.core.units import format_bytes
from pgvault.models.artifacts import BackupArtifact
from pgvault.models.pipeline import FailureReason, PipelineState
from pgvault.models.results import RotationResult, RunReport
from pgvault.storage.base import RemoteStore, newest

logger = logging.getLogger(__name__)

_BANNER = "=" * 42


class Orchestrator:
    """Runs one backup from admission control to retention rotation.

    Parameters
    ----------
    config:
        Immutable settings for this run.
    store:
        Remote Store holding the retained backups.
    dumper:
        External dump tool wrapped by the BackupProducer.
    guard, validator, rotation:
        Stage components; defaults are built when omitted.
    clock:
        Source of the run's creation time (UTC), used for artifact naming.
    """

    def __init__(
        self,
        config: BackupConfig,
        store: RemoteStore,
        dumper: DumpProducer,
        *,
        guard: DiskSpaceGuard | None = None,
        validator: SizeValidator | None = None,
        rotation: RotationEngine | None = None,
        clock: Callable[[], datetime] | None = None,
        run_id: str | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.dumper = dumper
        self.work_dir = Path(config.backup_local_dir)
        self.guard = guard or DiskSpaceGuard()
        self.producer = BackupProducer(dumper, self.work_dir)
        self.validator = validator or SizeValidator()
        self.rotation = rotation or RotationEngine()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        ts = self._clock().strftime("%Y%m%d-%H%M%S")
        self.run_id = run_id or f"pgv-{ts}-{uuid.uuid4().hex[:3]}"
        self.machine = PipelineMachine(self.run_id)

        # Run state
        self._artifact: BackupArtifact | None = None
        self._pending_path: Path | None = None
        self._remote_key: str | None = None
        self._rotation_result: RotationResult | None = None

    @property
    def prefix(self) -> str:
        return self.config.remote_prefix

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def run(self) -> RunReport:
        """Execute the pipeline once and return its terminal report.

        Stage failures end the run in FAILED with a structured reason.
        Unexpected exceptions also move the run to FAILED, are re-raised after
        local cleanup, and never leave an artifact behind.
        """
        if self.machine.state != PipelineState.START:
            raise RuntimeError(f"Run {self.run_id} has already been executed")

        started_at = datetime.now(timezone.utc)
        detail = ""
        logger.info(_BANNER)
        logger.info("PostgreSQL backup started (run %s)", self.run_id)
        logger.info(_BANNER)

        stage_reason = FailureReason.PREREQUISITES
        try:
            check_prerequisites(self.dumper, self.store, self.prefix)

            stage_reason = FailureReason.INSUFFICIENT_SPACE
            self.work_dir.mkdir(parents=True, exist_ok=True)

            taken_keys = self._check_space()
            self.machine.advance(PipelineState.SPACE_CHECKED)

            stage_reason = FailureReason.DUMP_FAILED
            artifact = self._produce(taken_keys)
            self.machine.advance(PipelineState.PRODUCED)

            stage_reason = FailureReason.SIZE_VALIDATION
            self._validate(artifact)
            self.machine.advance(PipelineState.VALIDATED)

            stage_reason = FailureReason.UPLOAD_FAILED
            remote_key = self._upload(artifact)
            self.machine.advance(PipelineState.UPLOADED, detail=remote_key)

            self._rotate()
            self.machine.advance(PipelineState.ROTATED)

            self._finish()
            self.machine.advance(PipelineState.DONE)
            logger.info(_BANNER)
            logger.info("Backup completed successfully")
            logger.info(_BANNER)
        except BackupError as exc:
            detail = str(exc)
            self.machine.fail(exc.reason or stage_reason, detail=detail)
            logger.error("Backup aborted: %s", detail)
        except Exception as exc:
            detail = f"{type(exc).__name__}: {exc}"
            if not self.machine.is_terminal:
                self.machine.fail(stage_reason, detail=detail)
            logger.exception("Unexpected error during backup run %s", self.run_id)
            raise
        finally:
            self._discard_local()

        return self._report(started_at, detail)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _check_space(self) -> set[str]:
        """START -> SPACE_CHECKED. Returns the remote keys already in use."""
        existing = self.store.list(self.prefix)
        last = newest(existing)
        expected = last.size_bytes if last is not None else 0
        self.guard.admit(
            self.work_dir,
            self.config.minimum_free_bytes,
            expected,
            self.config.space_multiplier,
        )
        return {obj.key for obj in existing}

    def _produce(self, taken_keys: set[str]) -> BackupArtifact:
        """SPACE_CHECKED -> PRODUCED."""
        name = unique_artifact_name(
            self.config.pg_database,
            self._clock(),
            taken_keys=taken_keys,
            prefix=self.prefix,
            work_dir=self.work_dir,
        )
        logger.info("Backup name: %s", name)
        self._pending_path = self.work_dir / name
        self._artifact = self.producer.produce(name, self._pending_path)
        return self._artifact

    def _validate(self, artifact: BackupArtifact) -> None:
        """PRODUCED -> VALIDATED."""
        self.validator.ensure_valid(
            artifact,
            self.store,
            self.prefix,
            self.config.min_size_percentage,
        )

    def _upload(self, artifact: BackupArtifact) -> str:
        """VALIDATED -> UPLOADED. Returns the remote key."""
        key = f"{self.prefix}{artifact.name}"
        metadata = {
            "timestamp": str(int(artifact.created_at.timestamp())),
            "database": self.config.pg_database,
        }
        logger.info(
            "Uploading %s (%s) to %s",
            artifact.name,
            format_bytes(artifact.size_bytes),
            key,
        )
        try:
            self.store.put(
                artifact.local_path,
                key,
                storage_class=self.config.storage_class,
                metadata=metadata,
            )
        except RemoteStoreError as exc:
            raise UploadFailedError(f"Failed to upload backup: {exc}") from exc
        self._remote_key = key
        logger.info("Upload completed successfully")
        return key

    def _rotate(self) -> None:
        """UPLOADED -> ROTATED. Partial rotation never fails the run."""
        self._rotation_result = self.rotation.rotate(
            self.store, self.prefix, self.config.keep_count
        )

    def _finish(self) -> None:
        """ROTATED -> DONE: drop the uploaded local copy and purge old logs."""
        self._discard_local()
        purge_old_logs(Path(self.config.log_dir), self.config.log_retention_days)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _discard_local(self) -> None:
        path = self._artifact.local_path if self._artifact else self._pending_path
        if path is not None and remove_file(path):
            logger.info("Cleaned up local backup: %s", path)

    def _report(self, started_at: datetime, detail: str) -> RunReport:
        artifact = self._artifact
        return RunReport(
            run_id=self.run_id,
            state=self.machine.state,
            failure_reason=self.machine.failure_reason,
            detail=detail,
            artifact_name=artifact.name if artifact else None,
            remote_key=self._remote_key,
            size_bytes=artifact.size_bytes if artifact else None,
            rotation=self._rotation_result,
            transitions=self.machine.history,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )


def build_orchestrator(
    config: BackupConfig,
    *,
    store: RemoteStore | None = None,
    dumper: DumpProducer | None = None,
) -> Orchestrator:
    """Wire an Orchestrator with the production collaborators unless overridden."""
    if store is None:
        from pgvault.storage.s3 import S3RemoteStore

        store = S3RemoteStore.from_config(config)
    return Orchestrator(
        config,
        store,
        dumper or PgDumpProducer.from_config(config),
    )


def run_backup(
    config: BackupConfig,
    *,
    store: RemoteStore | None = None,
    dumper: DumpProducer | None = None,
) -> int:
    """Single entry point for schedulers: run once, return the exit status."""
    report = build_orchestrator(config, store=store, dumper=dumper).run()
    return report.exit_code
