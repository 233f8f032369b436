"""Protocol engine — issuance, verification and lifecycle enforcement."""

from zkyc.engine.issuer import CommitmentIssuer
from zkyc.engine.lifecycle import TransitionError, advance, state_at
from zkyc.engine.verifier import CommitmentVerifier

__all__ = [
    "CommitmentIssuer",
    "CommitmentVerifier",
    "TransitionError",
    "advance",
    "state_at",
]
