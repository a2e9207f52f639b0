"""Acquisition state machine - tracks one lock request from node to outcome."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

import structlog

logger = structlog.get_logger()


class AcquisitionState(str, Enum):
    """Lock request lifecycle states."""
    REQUESTED = "requested"  # sequence node created
    WAITING = "waiting"
    HELD = "held"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


# Valid state transitions
TRANSITIONS: dict[AcquisitionState, list[AcquisitionState]] = {
    AcquisitionState.REQUESTED: [AcquisitionState.WAITING, AcquisitionState.FAILED],
    AcquisitionState.WAITING: [
        AcquisitionState.HELD,
        AcquisitionState.TIMED_OUT,
        AcquisitionState.FAILED,
    ],
    AcquisitionState.HELD: [],  # terminal
    AcquisitionState.TIMED_OUT: [],  # terminal
    AcquisitionState.FAILED: [],  # terminal
}


@dataclass
class Acquisition:
    """One attempt at taking a lock."""
    key: str
    mode: str
    state: AcquisitionState = AcquisitionState.REQUESTED
    handle: str | None = None
    index: int | None = None
    requested_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    def transition(self, new_state: AcquisitionState) -> None:
        """Move to new_state, rejecting transitions the lifecycle forbids."""
        valid_next = TRANSITIONS.get(self.state, [])
        if new_state not in valid_next:
            raise ValueError(
                f"Invalid transition: {self.state} -> {new_state}. "
                f"Valid: {valid_next}"
            )

        old_state = self.state
        self.state = new_state
        if not TRANSITIONS[new_state]:
            self.finished_at = datetime.now(timezone.utc)

        logger.debug(
            "Lock acquisition transition",
            key=self.key,
            mode=self.mode,
            handle=self.handle,
            from_state=old_state,
            to_state=new_state,
        )

    @property
    def finished(self) -> bool:
        return not TRANSITIONS[self.state]
