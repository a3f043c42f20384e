"""Stage result models: admission, validation, rotation, cleanup, run report."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from pgvault.models.artifacts import RemoteObjectRef
from pgvault.models.pipeline import FailureReason, PipelineState, StateTransition


class SpaceBudget(BaseModel):
    """Free-space figures behind one admission decision. Never persisted."""

    model_config = ConfigDict(frozen=True)

    available_bytes: int
    minimum_free_bytes: int
    required_bytes: int = 0  # expected next size * multiplier; 0 on first run


class AdmissionDecision(BaseModel):
    """Outcome of the Disk Space Guard."""

    model_config = ConfigDict(frozen=True)

    proceed: bool
    budget: SpaceBudget
    cleanup_attempts: int = 0
    reason: str = ""


class ValidationResult(BaseModel):
    """Outcome of the Size Validator.

    ``last_size`` is None when the Remote Store held no previous backup.
    """

    model_config = ConfigDict(frozen=True)

    passed: bool
    current_size: int
    last_size: int | None = None
    minimum_acceptable: int = 0


class DeleteOutcome(BaseModel):
    """Result of a best-effort delete loop: what went, what could not."""

    model_config = ConfigDict(frozen=True)

    count: int = 0
    errors: list[str] = []


class RotationResult(BaseModel):
    """Outcome of a retention rotation.

    A non-empty ``errors`` list is a partial rotation: logged, never fatal.
    """

    model_config = ConfigDict(frozen=True)

    deleted: list[RemoteObjectRef] = []
    kept: int = 0
    errors: list[str] = []

    @property
    def is_partial(self) -> bool:
        return bool(self.errors)


class RunReport(BaseModel):
    """Terminal summary of one pipeline run."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    state: PipelineState
    failure_reason: FailureReason | None = None
    detail: str = ""
    artifact_name: str | None = None
    remote_key: str | None = None
    size_bytes: int | None = None
    rotation: RotationResult | None = None
    transitions: list[StateTransition] = []
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    finished_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def succeeded(self) -> bool:
        return self.state == PipelineState.DONE

    @property
    def exit_code(self) -> int:
        """Process exit status: 0 on DONE, 1 on any failure."""
        return 0 if self.succeeded else 1
