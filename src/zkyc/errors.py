"""Error taxonomy for commitment issuance and verification.

Every error carries a stable ``kind`` string. The request surface reports
that string to callers, so the values below are part of the public contract
and must not be renamed.

Issuance-path errors are precise: the caller needs to know whether a
transaction may have been spent and whether a retry is safe. Read-path
errors are normally absorbed by the verifier into a negative answer.
"""

from __future__ import annotations


class CommitmentError(Exception):
    """Base class for all protocol errors."""

    kind = "commitment_error"


class ValidationError(CommitmentError):
    """Malformed or missing input. Raised locally, never after a network call."""

    kind = "validation_error"


class InvalidParameters(ValidationError):
    """Issuance preconditions violated (identifier, issuer id or expiry)."""

    kind = "invalid_parameters"


class SubmissionFailed(CommitmentError):
    """The ledger or signing layer rejected the transaction.

    Not retried automatically.
    """

    kind = "submission_failed"


class FinalityTimeout(CommitmentError):
    """Submitted, but finality was not observed within the configured bound.

    The outcome is ambiguous: the transaction may still be included later.
    Callers should re-query through the verifier instead of re-submitting.
    """

    kind = "finality_timeout"

    def __init__(self, message: str, tx_hash: str | None = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


class DuplicateCommitment(CommitmentError):
    """The identifier is already published. The desired end state holds."""

    kind = "duplicate_commitment"


class LedgerReadError(CommitmentError):
    """A read-only call failed (network, timeout, malformed response)."""

    kind = "read_failed"
