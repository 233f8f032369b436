"""Ledger gateway contract — the only boundary the protocol core depends on.

The gateway is an external collaborator. It owns transaction construction,
signing, broadcast and view-function execution. The core never touches
ledger state except through ``submit_transaction``.

Three capabilities are required:

1. ``submit_transaction`` places a call into the network's pending pool
   and returns a handle. Entering the pool is not acceptance.
2. ``await_finality`` blocks (asynchronously) until the transaction is
   included and final, bounded by a timeout.
3. ``call_read_only`` executes a view function without a transaction.

Adding a new ledger = implement this Protocol. Zero changes to the
issuer, verifier or service.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

# Commitment contract function identifiers.
PUBLISH_FUNCTION = "publish_commitment"
VERIFY_FUNCTION = "verify"
GET_COMMITMENT_FUNCTION = "get_commitment"


@dataclass(frozen=True)
class PendingHandle:
    """A submitted, not yet final, transaction."""
    tx_hash: str
    function_id: str
    args: tuple[Any, ...] = ()
    sender: Optional[str] = None


@runtime_checkable
class Signer(Protocol):
    """Signing identity used for issuance.

    An eth-account ``LocalAccount`` satisfies this Protocol. Tests may
    supply any object exposing an ``address``.
    """

    @property
    def address(self) -> str:
        ...

    def sign_transaction(self, transaction_dict: dict[str, Any]) -> Any:
        ...


@runtime_checkable
class LedgerGateway(Protocol):
    """Submit / await / read operations against the commitment contract."""

    async def submit_transaction(
        self,
        function_id: str,
        type_args: Sequence[Any],
        args: Sequence[Any],
        signer: Signer,
    ) -> PendingHandle:
        """Submit a state-changing call.

        Raises:
            SubmissionFailed: rejected before reaching the pending pool.
            DuplicateCommitment: the ledger reports the key already exists.
        """
        ...

    async def await_finality(self, handle: PendingHandle, timeout: float) -> str:
        """Wait for inclusion and return the final transaction hash.

        Raises:
            FinalityTimeout: finality not observed within ``timeout`` seconds.
            DuplicateCommitment: included but rejected as a duplicate write.
            SubmissionFailed: included but reverted for another reason.
        """
        ...

    async def call_read_only(
        self,
        function_id: str,
        type_args: Sequence[Any],
        args: Sequence[Any],
    ) -> Any:
        """Execute a view function.

        Raises:
            LedgerReadError: on any failure of the read path.
        """
        ...
