"""Commitment models — ledger-resident bindings and their lifecycle states.

A commitment binds a 32-byte identifier to an issuer and an expiry
timestamp. The binding is write-once on the ledger: it is created, never
updated, never deleted.

Expiry is not a ledger state. It is derived wherever the commitment is
used by comparing ``validity_window`` with that caller's clock.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional

from zkyc.errors import ValidationError

IDENTIFIER_LENGTH = 32


class CommitmentState(str, enum.Enum):
    """Lifecycle of a commitment as observed by the protocol."""
    ABSENT = "absent"        # Never issued, or issuance rejected
    PENDING = "pending"      # In-flight transaction, not yet final
    PUBLISHED = "published"  # Finalized and queryable
    EXPIRED = "expired"      # Published, validity window has passed (derived)


@dataclass(frozen=True)
class Commitment:
    """A published commitment as read back from the ledger."""
    identifier: bytes
    issuer_id: int
    validity_window: int
    published_at: Optional[int] = None

    def is_expired(self, now: float) -> bool:
        """True once ``now`` has reached the expiry timestamp."""
        return now >= self.validity_window

    def to_dict(self) -> dict[str, Any]:
        return {
            "issuerId": self.issuer_id,
            "validityWindow": self.validity_window,
        }


@dataclass(frozen=True)
class VerificationResult:
    """Answer to "does this commitment exist".

    ``commitment`` is set if and only if ``exists`` is True.
    """
    exists: bool
    commitment: Optional[Commitment] = None

    def to_dict(self) -> dict[str, Any]:
        if not self.exists or self.commitment is None:
            return {"exists": False}
        return {"exists": True, "commitment": self.commitment.to_dict()}


@dataclass(frozen=True)
class TransactionReceipt:
    """Proof of on-chain inclusion for one issuance."""
    identifier: bytes
    tx_hash: str
    issuer_id: int
    validity_window: int
    state: CommitmentState = CommitmentState.PUBLISHED


def identifier_to_hex(identifier: bytes) -> str:
    """Format an identifier as ``0x`` followed by 64 lowercase hex digits."""
    return "0x" + identifier.hex()


def parse_identifier(value: bytes | str) -> bytes:
    """Normalize a caller-supplied identifier to 32 raw bytes.

    Accepts raw bytes, or a hex string with or without a ``0x`` prefix.

    Raises:
        ValidationError: if the value is not exactly 32 bytes of hex.
    """
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str):
        clean = value.strip().removeprefix("0x").removeprefix("0X")
        if len(clean) != IDENTIFIER_LENGTH * 2:
            raise ValidationError(
                f"Commitment hash must be {IDENTIFIER_LENGTH * 2} hex digits, "
                f"got {len(clean)}"
            )
        try:
            raw = bytes.fromhex(clean)
        except ValueError:
            raise ValidationError(f"Commitment hash is not valid hex: {value!r}") from None
    else:
        raise ValidationError(
            f"Commitment hash must be bytes or a hex string, got {type(value).__name__}"
        )

    if len(raw) != IDENTIFIER_LENGTH:
        raise ValidationError(
            f"Commitment identifier must be {IDENTIFIER_LENGTH} bytes, got {len(raw)}"
        )
    return raw
