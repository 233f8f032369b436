"""Commitment lifecycle — enforces the legal state transitions.

Transitions are fail-closed: any move not listed below is rejected.
There is no path out of PUBLISHED other than expiry, and no path back
from EXPIRED: commitments are write-once and never deleted.
"""

from __future__ import annotations

from zkyc.models.commitment import CommitmentState, VerificationResult

# Legal transitions: (from_state, to_state)
_TRANSITIONS: set[tuple[CommitmentState, CommitmentState]] = {
    (CommitmentState.ABSENT, CommitmentState.PENDING),
    (CommitmentState.PENDING, CommitmentState.PUBLISHED),
    # Submission or inclusion rejected
    (CommitmentState.PENDING, CommitmentState.ABSENT),
    # Derived by the caller's clock
    (CommitmentState.PUBLISHED, CommitmentState.EXPIRED),
}


class TransitionError(Exception):
    """Raised when a lifecycle transition is not allowed."""


def advance(current: CommitmentState, target: CommitmentState) -> CommitmentState:
    """Validate and return the next state."""
    if (current, target) not in _TRANSITIONS:
        raise TransitionError(f"Illegal transition: {current.value} → {target.value}")
    return target


def state_at(result: VerificationResult, now: float) -> CommitmentState:
    """Derive the caller-side state of a verified commitment at ``now``.

    A pending transaction is invisible to the read path, so a verification
    result only ever maps to ABSENT, PUBLISHED or EXPIRED.
    """
    if not result.exists or result.commitment is None:
        return CommitmentState.ABSENT
    if result.commitment.is_expired(now):
        return CommitmentState.EXPIRED
    return CommitmentState.PUBLISHED
