"""Core data models for zKYC commitments."""

from zkyc.models.commitment import (
    Commitment,
    CommitmentState,
    TransactionReceipt,
    VerificationResult,
)
from zkyc.models.proof import ProofRecord, ProofResult

__all__ = [
    "Commitment",
    "CommitmentState",
    "TransactionReceipt",
    "VerificationResult",
    "ProofRecord",
    "ProofResult",
]
