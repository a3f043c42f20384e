"""Deterministic pipeline state machine.

Enforces:
- Valid state transitions only (VALID_TRANSITIONS table)
- FAILED carries a FailureReason; no other state may
- DONE and FAILED are absorbing
- Every transition recorded, in order, for the run report
"""

from __future__ import annotations

import logging

from pgvault.models.pipeline import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    FailureReason,
    PipelineState,
    StateTransition,
)

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when a requested state transition is not valid."""


class PipelineMachine:
    """Tracks the state of a single backup run.

    Parameters
    ----------
    run_id:
        Identifier used in log lines.
    """

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        self._state = PipelineState.START
        self._failure_reason: FailureReason | None = None
        self._history: list[StateTransition] = []

    # ------------------------------------------------------------------
    # State queries
    # ------------------------------------------------------------------

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def failure_reason(self) -> FailureReason | None:
        return self._failure_reason

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    @property
    def history(self) -> list[StateTransition]:
        """Snapshot of every transition taken so far."""
        return list(self._history)

    def get_available_transitions(self) -> set[PipelineState]:
        """Return the set of valid target states from the current state."""
        return set(VALID_TRANSITIONS.get(self._state, set()))

    # ------------------------------------------------------------------
    # Transition logic
    # ------------------------------------------------------------------

    def advance(self, target_state: PipelineState, *, detail: str = "") -> StateTransition:
        """Move along the happy path."""
        if target_state == PipelineState.FAILED:
            raise InvalidTransitionError("Use fail() to enter the failed state")
        return self._transition(target_state, None, detail)

    def fail(self, reason: FailureReason, *, detail: str = "") -> StateTransition:
        """Move to FAILED from any non-terminal state."""
        return self._transition(PipelineState.FAILED, reason, detail)

    def _transition(
        self,
        target_state: PipelineState,
        reason: FailureReason | None,
        detail: str,
    ) -> StateTransition:
        current = self._state
        allowed = VALID_TRANSITIONS.get(current, set())
        if target_state not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition run {self.run_id} from {current.value} to "
                f"{target_state.value}. Allowed: {sorted(s.value for s in allowed)}"
            )

        record = StateTransition(
            from_state=current,
            to_state=target_state,
            failure_reason=reason,
            detail=detail,
        )
        self._history.append(record)
        self._state = target_state
        if reason is not None:
            self._failure_reason = reason
            logger.error(
                "Run %s: %s -> %s (%s) %s",
                self.run_id, current.value, target_state.value, reason.value, detail,
            )
        else:
            logger.debug("Run %s: %s -> %s", self.run_id, current.value, target_state.value)
        return record
