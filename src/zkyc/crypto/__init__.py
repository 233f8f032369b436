"""Cryptographic primitives — commitment identifier derivation."""

from zkyc.crypto.hashing import canonical_string, derive_commitment_id

__all__ = ["canonical_string", "derive_commitment_id"]
