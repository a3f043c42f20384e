"""Pipeline state machine models: states, failure reasons, transitions."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PipelineState(str, Enum):
    """States of a single backup run."""

    START = "start"
    SPACE_CHECKED = "space_checked"
    PRODUCED = "produced"
    VALIDATED = "validated"
    UPLOADED = "uploaded"
    ROTATED = "rotated"
    DONE = "done"
    FAILED = "failed"


class FailureReason(str, Enum):
    """Structured reason attached to a FAILED run."""

    CONFIGURATION = "configuration"
    PREREQUISITES = "prerequisites"
    INSUFFICIENT_SPACE = "insufficient_space"
    DUMP_FAILED = "dump_failed"
    EMPTY_ARTIFACT = "empty_artifact"
    SIZE_VALIDATION = "size_validation"
    UPLOAD_FAILED = "upload_failed"


# Happy path is strictly linear; FAILED is reachable from every non-terminal
# state. DONE and FAILED have no outgoing transitions.
VALID_TRANSITIONS: dict[PipelineState, set[PipelineState]] = {
    PipelineState.START: {PipelineState.SPACE_CHECKED, PipelineState.FAILED},
    PipelineState.SPACE_CHECKED: {PipelineState.PRODUCED, PipelineState.FAILED},
    PipelineState.PRODUCED: {PipelineState.VALIDATED, PipelineState.FAILED},
    PipelineState.VALIDATED: {PipelineState.UPLOADED, PipelineState.FAILED},
    PipelineState.UPLOADED: {PipelineState.ROTATED, PipelineState.FAILED},
    PipelineState.ROTATED: {PipelineState.DONE, PipelineState.FAILED},
    PipelineState.DONE: set(),  # terminal
    PipelineState.FAILED: set(),  # terminal
}

TERMINAL_STATES: frozenset[PipelineState] = frozenset(
    {PipelineState.DONE, PipelineState.FAILED}
)


class StateTransition(BaseModel):
    """Records a single state transition for the run report."""

    model_config = ConfigDict(frozen=True)

    from_state: PipelineState
    to_state: PipelineState
    failure_reason: FailureReason | None = None  # populated when entering FAILED
    detail: str = ""
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
