"""Commitment identifier derivation.

The identifier is the SHA-256 digest of the proof's canonical string:

    "{task}:{verify_timestamp}:{validator_address}:{data}"

UTF-8 encoded. Field order and the ``:`` delimiter are a wire contract
shared with every other implementation that commits or looks up proofs.
Changing either changes every future identifier.
"""

from __future__ import annotations

import hashlib

from zkyc.models.proof import ProofRecord

DELIMITER = ":"


def canonical_string(proof: ProofRecord) -> str:
    """Return the canonical serialization of the committed fields."""
    return DELIMITER.join((
        proof.task,
        str(proof.result.verify_timestamp),
        proof.validator_address,
        proof.result.data,
    ))


def derive_commitment_id(proof: ProofRecord) -> bytes:
    """Derive the 32-byte commitment identifier for a proof.

    Pure and deterministic. Does not check the verification outcome;
    eligibility is enforced by the caller before deriving.
    """
    return hashlib.sha256(canonical_string(proof).encode("utf-8")).digest()
