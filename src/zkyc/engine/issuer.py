"""Commitment issuer — publishes identifiers and waits for finality.

Issuance is a two-step sequence: submit, then confirm. Submission only
guarantees the transaction entered the pending pool; an identifier is
not committed until finality confirms inclusion. Nothing here retries:
retrying a transaction that may already be final risks a spurious
duplicate rejection, so every failure is surfaced to the caller.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

from zkyc.engine.lifecycle import advance
from zkyc.errors import (
    DuplicateCommitment,
    FinalityTimeout,
    InvalidParameters,
    SubmissionFailed,
)
from zkyc.ledger.gateway import PUBLISH_FUNCTION, LedgerGateway, Signer
from zkyc.models.commitment import (
    IDENTIFIER_LENGTH,
    CommitmentState,
    TransactionReceipt,
)

logger = logging.getLogger(__name__)

UINT64_MAX = 2**64 - 1

# Extra time allowed for a gateway to honour its own finality timeout.
FINALITY_GRACE_SECONDS = 5.0


class CommitmentIssuer:
    """Publishes commitments through a ledger gateway.

    The signer is injected at construction and shared by every issuance.
    Authorization of the signer is the ledger contract's decision; an
    unauthorized signer surfaces as SubmissionFailed.
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        signer: Signer,
        finality_timeout: float = 120.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if finality_timeout <= 0:
            raise ValueError("finality_timeout must be positive")
        self._gateway = gateway
        self._signer = signer
        self._finality_timeout = finality_timeout
        self._clock = clock

    @property
    def signer_address(self) -> str:
        return self._signer.address

    async def issue(
        self,
        identifier: bytes,
        issuer_id: int,
        validity_window: int,
    ) -> TransactionReceipt:
        """Publish a commitment and return the finalized receipt.

        Raises:
            InvalidParameters: preconditions violated; no network call made.
            SubmissionFailed: rejected before reaching the pending pool.
            DuplicateCommitment: the identifier is already published.
            FinalityTimeout: submitted, but not final within the bound.
        """
        self.validate(identifier, issuer_id, validity_window)
        label = "0x" + bytes(identifier).hex()
        state = advance(CommitmentState.ABSENT, CommitmentState.PENDING)

        try:
            handle = await self._gateway.submit_transaction(
                PUBLISH_FUNCTION,
                [],
                [bytes(identifier), issuer_id, validity_window],
                self._signer,
            )
        except DuplicateCommitment:
            state = advance(state, CommitmentState.ABSENT)
            logger.warning("Commitment %s already published", label)
            raise
        except SubmissionFailed as exc:
            state = advance(state, CommitmentState.ABSENT)
            logger.error("Submission of %s failed: %s", label, exc)
            raise

        logger.info("Commitment %s pending in tx %s", label, handle.tx_hash)

        try:
            tx_hash = await asyncio.wait_for(
                self._gateway.await_finality(handle, self._finality_timeout),
                timeout=self._finality_timeout + FINALITY_GRACE_SECONDS,
            )
        except asyncio.TimeoutError:
            logger.warning("No finality for %s after %ss", handle.tx_hash, self._finality_timeout)
            raise FinalityTimeout(
                f"Transaction {handle.tx_hash} not final after {self._finality_timeout}s",
                tx_hash=handle.tx_hash,
            ) from None
        except FinalityTimeout:
            logger.warning("No finality for %s after %ss", handle.tx_hash, self._finality_timeout)
            raise
        except DuplicateCommitment:
            state = advance(state, CommitmentState.ABSENT)
            logger.warning("Commitment %s was published by a concurrent writer", label)
            raise
        except SubmissionFailed as exc:
            state = advance(state, CommitmentState.ABSENT)
            logger.error("Transaction %s reverted: %s", handle.tx_hash, exc)
            raise

        state = advance(state, CommitmentState.PUBLISHED)
        logger.info("Commitment %s published in tx %s", label, tx_hash)
        return TransactionReceipt(
            identifier=bytes(identifier),
            tx_hash=tx_hash,
            issuer_id=issuer_id,
            validity_window=validity_window,
            state=state,
        )

    def validate(self, identifier: Any, issuer_id: Any, validity_window: Any) -> None:
        """Check issuance preconditions. Raises InvalidParameters."""
        if not isinstance(identifier, (bytes, bytearray)) or len(identifier) != IDENTIFIER_LENGTH:
            raise InvalidParameters(
                f"Commitment identifier must be {IDENTIFIER_LENGTH} bytes"
            )
        if isinstance(issuer_id, bool) or not isinstance(issuer_id, int):
            raise InvalidParameters("issuer_id must be an integer")
        if not 0 < issuer_id <= UINT64_MAX:
            raise InvalidParameters(f"issuer_id must be a positive integer, got {issuer_id}")
        if isinstance(validity_window, bool) or not isinstance(validity_window, int):
            raise InvalidParameters("validity_window must be an integer Unix timestamp")
        if validity_window > UINT64_MAX:
            raise InvalidParameters("validity_window is out of range")
        now = self._clock()
        if validity_window <= now:
            raise InvalidParameters(
                f"validity_window {validity_window} is not in the future (now {int(now)})"
            )
