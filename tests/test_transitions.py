"""Test the processing status transition table."""
import pytest

from pipeline.transitions import (
    ProcessingStatus,
    TRANSITIONS,
    IllegalTransitionError,
    can_transition,
    ensure_transition,
    can_resume,
)

S = ProcessingStatus


def test_table_covers_every_status():
    assert set(TRANSITIONS) == set(ProcessingStatus)


@pytest.mark.parametrize("current,target", [
    (S.IDLE, S.CHUNKING),
    (S.CHUNKING, S.PROCESSING),
    (S.PROCESSING, S.SYNTHESIZING),
    (S.PROCESSING, S.ERROR),
    (S.SYNTHESIZING, S.COMPLETED),
    (S.SYNTHESIZING, S.ERROR),
    (S.ERROR, S.PROCESSING),
    (S.ERROR, S.SYNTHESIZING),
])
def test_allowed_transitions(current, target):
    assert can_transition(current, target)
    ensure_transition(current, target)


@pytest.mark.parametrize("current,target", [
    (S.IDLE, S.PROCESSING),
    (S.CHUNKING, S.COMPLETED),
    (S.PROCESSING, S.COMPLETED),
    (S.ERROR, S.COMPLETED),
    (S.COMPLETED, S.PROCESSING),
    (S.COMPLETED, S.ERROR),
])
def test_illegal_transitions(current, target):
    assert not can_transition(current, target)
    with pytest.raises(IllegalTransitionError):
        ensure_transition(current, target)


def test_completed_is_terminal():
    assert TRANSITIONS[S.COMPLETED] == frozenset()


def test_resumable_statuses():
    assert can_resume(S.ERROR)
    assert can_resume(S.PROCESSING)
    assert can_resume(S.SYNTHESIZING)
    assert can_resume(S.CHUNKING)
    assert not can_resume(S.COMPLETED)
    assert not can_resume(S.IDLE)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
