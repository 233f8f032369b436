"""Commitment verifier — answers "does this commitment exist".

Two sequential view calls: an existence check, then (only on a positive
answer) a detail fetch. A view call against a missing key may itself
fail instead of returning a negative result, so existence is never
inferred from a successful detail fetch.

Error policy: in the default lenient mode any read-path failure (network
error, timeout, malformed response, node unavailable) is reported as
``exists=False``. False negatives are possible under partition; false
positives are not. Strict mode raises LedgerReadError instead.

Expiry is not evaluated here. The raw validity window is returned and the
caller compares it with its own clock.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

from zkyc.errors import LedgerReadError, ValidationError
from zkyc.ledger.gateway import (
    GET_COMMITMENT_FUNCTION,
    VERIFY_FUNCTION,
    LedgerGateway,
)
from zkyc.models.commitment import IDENTIFIER_LENGTH, Commitment, VerificationResult

logger = logging.getLogger(__name__)


class CommitmentVerifier:
    """Reads commitments back from the ledger."""

    def __init__(
        self,
        gateway: LedgerGateway,
        read_timeout: float = 10.0,
        strict: bool = False,
    ) -> None:
        if read_timeout <= 0:
            raise ValueError("read_timeout must be positive")
        self._gateway = gateway
        self._read_timeout = read_timeout
        self._strict = strict

    @property
    def strict(self) -> bool:
        return self._strict

    async def verify(self, identifier: bytes) -> VerificationResult:
        """Look up a commitment.

        Raises:
            ValidationError: identifier is not 32 bytes (checked locally).
            LedgerReadError: only in strict mode.
        """
        if not isinstance(identifier, (bytes, bytearray)) or len(identifier) != IDENTIFIER_LENGTH:
            raise ValidationError(f"Commitment identifier must be {IDENTIFIER_LENGTH} bytes")
        identifier = bytes(identifier)

        try:
            exists = _interpret_exists(await self._read(VERIFY_FUNCTION, identifier))
            if not exists:
                return VerificationResult(exists=False)
            issuer_id, validity_window = _interpret_commitment(
                await self._read(GET_COMMITMENT_FUNCTION, identifier)
            )
        except LedgerReadError as exc:
            if self._strict:
                raise
            logger.warning(
                "Read failed for 0x%s, reporting not committed: %s", identifier.hex(), exc,
            )
            return VerificationResult(exists=False)

        return VerificationResult(
            exists=True,
            commitment=Commitment(
                identifier=identifier,
                issuer_id=issuer_id,
                validity_window=validity_window,
            ),
        )

    async def _read(self, function_id: str, identifier: bytes) -> Any:
        try:
            return await asyncio.wait_for(
                self._gateway.call_read_only(function_id, [], [identifier]),
                timeout=self._read_timeout,
            )
        except asyncio.TimeoutError:
            raise LedgerReadError(
                f"{function_id} timed out after {self._read_timeout}s"
            ) from None
        except LedgerReadError:
            raise
        except Exception as exc:
            raise LedgerReadError(f"{function_id} failed: {exc}") from exc


def _unwrap(raw: Any) -> Any:
    """View calls may return their outputs wrapped in a one-element list."""
    if isinstance(raw, (list, tuple)) and len(raw) == 1:
        return raw[0]
    return raw


def _interpret_exists(raw: Any) -> bool:
    value = _unwrap(raw)
    # Only a literal boolean counts. Truthy junk must not become a positive.
    if value is True:
        return True
    if value is False:
        return False
    raise LedgerReadError(f"Malformed existence result: {raw!r}")


def _interpret_commitment(raw: Any) -> tuple[int, int]:
    value = _unwrap(raw)
    if isinstance(value, Mapping):
        issuer_id = value.get("issuer_id", value.get("issuerId"))
        validity_window = value.get("validity_window", value.get("validityWindow"))
    elif isinstance(value, (list, tuple)) and len(value) == 2:
        issuer_id, validity_window = value
    else:
        raise LedgerReadError(f"Malformed commitment result: {raw!r}")
    return _as_uint(issuer_id, "issuer_id"), _as_uint(validity_window, "validity_window")


def _as_uint(value: Any, name: str) -> int:
    # Some ledgers encode u64 values as decimal strings.
    if isinstance(value, str) and value.isascii() and value.isdecimal():
        return int(value)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise LedgerReadError(f"Malformed {name} in commitment result: {value!r}")
    return value
