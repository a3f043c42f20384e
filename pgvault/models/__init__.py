"""pgvault data models: all Pydantic v2, all frozen (immutable)."""

from pgvault.models.artifacts import BackupArtifact, RemoteObjectRef
from pgvault.models.pipeline import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    FailureReason,
    PipelineState,
    StateTransition,
)
from pgvault.models.results import (
    AdmissionDecision,
    DeleteOutcome,
    RotationResult,
    RunReport,
    SpaceBudget,
    ValidationResult,
)

__all__ = [
    # artifacts
    "BackupArtifact",
    "RemoteObjectRef",
    # pipeline
    "PipelineState",
    "FailureReason",
    "StateTransition",
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    # results
    "SpaceBudget",
    "AdmissionDecision",
    "ValidationResult",
    "DeleteOutcome",
    "RotationResult",
    "RunReport",
]
