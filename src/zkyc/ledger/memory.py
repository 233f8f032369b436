"""In-process ledger gateway with the commitment contract's semantics.

Behaves like the on-chain contract: commitments are write-once, a
publish for an existing key is rejected, and reads of a missing key
abort rather than return an empty value. Transactions sit in a pending
pool until ``await_finality`` includes them.

Used as the development ledger and as the test double. Fault injection
flags simulate the failure modes of a real network:

    ledger = InMemoryLedgerGateway()
    ledger.fail_submissions = True   # submit raises SubmissionFailed
    ledger.withhold_finality = True  # await raises FinalityTimeout
    ledger.fail_reads = True         # reads raise LedgerReadError
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import time
from typing import Any, Callable, Iterable, Optional, Sequence

from zkyc.errors import (
    DuplicateCommitment,
    FinalityTimeout,
    LedgerReadError,
    SubmissionFailed,
)
from zkyc.ledger.gateway import (
    GET_COMMITMENT_FUNCTION,
    PUBLISH_FUNCTION,
    VERIFY_FUNCTION,
    PendingHandle,
    Signer,
)
from zkyc.models.commitment import IDENTIFIER_LENGTH, Commitment

logger = logging.getLogger(__name__)


class InMemoryLedgerGateway:
    """A single-node, instantly-final commitment ledger."""

    def __init__(
        self,
        authorized_senders: Optional[Iterable[str]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._authorized = (
            {s.lower() for s in authorized_senders}
            if authorized_senders is not None else None
        )
        self._clock = clock
        self._store: dict[bytes, Commitment] = {}
        self._pending: dict[str, PendingHandle] = {}
        self._tx_counter = 0

        self.fail_submissions = False
        self.withhold_finality = False
        self.fail_reads = False
        self.finality_delay = 0.0
        self.read_delay = 0.0
        # function_id -> value returned instead of the real result
        self.read_overrides: dict[str, Any] = {}

        self.submit_calls = 0
        self.read_calls = 0

    # ------------------------------------------------------------------
    # Gateway contract
    # ------------------------------------------------------------------

    async def submit_transaction(
        self,
        function_id: str,
        type_args: Sequence[Any],
        args: Sequence[Any],
        signer: Signer,
    ) -> PendingHandle:
        self.submit_calls += 1
        await asyncio.sleep(0)

        if self.fail_submissions:
            raise SubmissionFailed("Ledger node rejected the transaction")
        if list(type_args):
            raise SubmissionFailed("Commitment contract takes no type arguments")
        if function_id != PUBLISH_FUNCTION:
            raise SubmissionFailed(f"Unknown entry function: {function_id}")
        if len(args) != 3:
            raise SubmissionFailed(f"{function_id} expects 3 arguments, got {len(args)}")

        sender = str(signer.address)
        if self._authorized is not None and sender.lower() not in self._authorized:
            raise SubmissionFailed(f"Sender {sender} is not an authorized issuer")

        identifier = _require_identifier(args[0], SubmissionFailed)
        for value in args[1:]:
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise SubmissionFailed(f"Expected an unsigned integer argument, got {value!r}")
        if identifier in self._store:
            raise DuplicateCommitment(
                f"Commitment 0x{identifier.hex()} already exists"
            )

        self._tx_counter += 1
        tx_hash = "0x" + hashlib.sha256(
            f"{self._tx_counter}:{identifier.hex()}:{sender}".encode("utf-8")
        ).hexdigest()
        handle = PendingHandle(
            tx_hash=tx_hash,
            function_id=function_id,
            args=(identifier, args[1], args[2]),
            sender=sender,
        )
        self._pending[tx_hash] = handle
        logger.debug("Accepted %s into pending pool", tx_hash)
        return handle

    async def await_finality(self, handle: PendingHandle, timeout: float) -> str:
        if self.withhold_finality or self.finality_delay > timeout:
            await asyncio.sleep(timeout)
            raise FinalityTimeout(
                f"Transaction {handle.tx_hash} not final after {timeout}s",
                tx_hash=handle.tx_hash,
            )
        await asyncio.sleep(self.finality_delay)
        if handle.tx_hash not in self._pending:
            raise FinalityTimeout(
                f"Transaction {handle.tx_hash} is unknown to this ledger",
                tx_hash=handle.tx_hash,
            )
        self._include(handle)
        return handle.tx_hash

    async def call_read_only(
        self,
        function_id: str,
        type_args: Sequence[Any],
        args: Sequence[Any],
    ) -> Any:
        self.read_calls += 1
        if self.read_delay:
            await asyncio.sleep(self.read_delay)
        else:
            await asyncio.sleep(0)

        if self.fail_reads:
            raise LedgerReadError("Ledger node unavailable")
        if list(type_args):
            raise LedgerReadError("View functions take no type arguments")
        if function_id in self.read_overrides:
            return self.read_overrides[function_id]
        if len(args) != 1:
            raise LedgerReadError(f"{function_id} expects 1 argument, got {len(args)}")

        identifier = _require_identifier(args[0], LedgerReadError)
        if function_id == VERIFY_FUNCTION:
            return identifier in self._store
        if function_id == GET_COMMITMENT_FUNCTION:
            commitment = self._store.get(identifier)
            if commitment is None:
                raise LedgerReadError(f"Commitment 0x{identifier.hex()} not found")
            return (commitment.issuer_id, commitment.validity_window)
        raise LedgerReadError(f"Unknown view function: {function_id}")

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def finalize_pending(self) -> list[str]:
        """Include every withheld transaction. Returns the included hashes.

        Simulates transactions that finalize after the caller timed out.
        Duplicates among them are dropped, as the contract would revert them.
        """
        included: list[str] = []
        for handle in list(self._pending.values()):
            try:
                self._include(handle)
            except DuplicateCommitment:
                logger.debug("Dropped duplicate pending tx %s", handle.tx_hash)
                continue
            included.append(handle.tx_hash)
        return included

    @property
    def commitments(self) -> dict[bytes, Commitment]:
        """Snapshot of the published store."""
        return dict(self._store)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _include(self, handle: PendingHandle) -> None:
        self._pending.pop(handle.tx_hash, None)
        identifier, issuer_id, validity_window = handle.args
        # Concurrent submissions of one key: the first included wins.
        if identifier in self._store:
            raise DuplicateCommitment(
                f"Commitment 0x{identifier.hex()} already exists"
            )
        self._store[identifier] = Commitment(
            identifier=identifier,
            issuer_id=issuer_id,
            validity_window=validity_window,
            published_at=int(self._clock()),
        )


def _require_identifier(value: Any, error: type[Exception]) -> bytes:
    if not isinstance(value, (bytes, bytearray)) or len(value) != IDENTIFIER_LENGTH:
        raise error(f"Expected a {IDENTIFIER_LENGTH}-byte identifier")
    return bytes(value)
