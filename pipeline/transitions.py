"""Processing status enum and its transition table."""
from enum import Enum
from typing import Dict, FrozenSet


class ProcessingStatus(str, Enum):
    IDLE = "IDLE"
    CHUNKING = "CHUNKING"
    PROCESSING = "PROCESSING"
    SYNTHESIZING = "SYNTHESIZING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


class SessionError(Exception):
    """Base class for session state machine errors."""
    pass


class IllegalTransitionError(SessionError):
    """Raised when an operation would move a session along an edge not in TRANSITIONS."""
    pass


# PROCESSING -> PROCESSING and SYNTHESIZING -> PROCESSING re-enter the run loop
# for a record restored after the process died mid-run.
TRANSITIONS: Dict[ProcessingStatus, FrozenSet[ProcessingStatus]] = {
    ProcessingStatus.IDLE: frozenset({ProcessingStatus.CHUNKING}),
    ProcessingStatus.CHUNKING: frozenset({ProcessingStatus.PROCESSING}),
    ProcessingStatus.PROCESSING: frozenset({
        ProcessingStatus.PROCESSING,
        ProcessingStatus.SYNTHESIZING,
        ProcessingStatus.ERROR,
    }),
    ProcessingStatus.SYNTHESIZING: frozenset({
        ProcessingStatus.PROCESSING,
        ProcessingStatus.COMPLETED,
        ProcessingStatus.ERROR,
    }),
    ProcessingStatus.ERROR: frozenset({
        ProcessingStatus.PROCESSING,
        ProcessingStatus.SYNTHESIZING,
    }),
    ProcessingStatus.COMPLETED: frozenset(),
}

RESUMABLE: FrozenSet[ProcessingStatus] = frozenset({
    ProcessingStatus.CHUNKING,
    ProcessingStatus.PROCESSING,
    ProcessingStatus.SYNTHESIZING,
    ProcessingStatus.ERROR,
})


def can_transition(current: ProcessingStatus, target: ProcessingStatus) -> bool:
    return target in TRANSITIONS[current]


def ensure_transition(current: ProcessingStatus, target: ProcessingStatus) -> None:
    """Raise IllegalTransitionError unless ``current -> target`` is allowed."""
    if not can_transition(current, target):
        raise IllegalTransitionError(f"Cannot move session from {current.value} to {target.value}")


def can_resume(status: ProcessingStatus) -> bool:
    """Whether a session in ``status`` may be driven again by resume."""
    return status in RESUMABLE
