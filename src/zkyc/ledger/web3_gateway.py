"""Ethereum gateway — publishes and reads commitments through web3.py.

Each issuance is a call to the commitment contract's
``publish_commitment`` entry point, signed locally with the injected
credential and broadcast as a raw transaction. Finality is one
confirmed receipt, bounded by the caller's timeout.

Gas estimation happens inside ``build_transaction``, so a publish that
would revert (duplicate hash, unauthorized sender) fails here, before
anything reaches the pending pool.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Optional, Sequence

from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import ContractLogicError, TimeExhausted

from zkyc.errors import (
    DuplicateCommitment,
    FinalityTimeout,
    LedgerReadError,
    SubmissionFailed,
    ValidationError,
)
from zkyc.ledger.abi import COMMITMENT_ABI
from zkyc.ledger.gateway import (
    PUBLISH_FUNCTION,
    VERIFY_FUNCTION,
    PendingHandle,
    Signer,
)

if TYPE_CHECKING:
    from zkyc.config import LedgerConfig

logger = logging.getLogger(__name__)

# Substrings of revert reasons that mean "this hash is already stored".
DUPLICATE_REVERT_MARKERS = (
    "already exists",
    "already published",
    "duplicate",
    "commitment_exists",
)


class Web3LedgerGateway:
    """LedgerGateway backed by an EVM commitment contract.

    Usage:
        gateway = Web3LedgerGateway.from_config(config)
        handle = await gateway.submit_transaction(
            "publish_commitment", [], [identifier, 1, 1731536000], signer,
        )
        tx_hash = await gateway.await_finality(handle, timeout=120)
    """

    def __init__(
        self,
        rpc_url: str,
        contract_address: str,
        chain_id: int = 11155111,  # Sepolia
        w3: Optional[AsyncWeb3] = None,
        duplicate_markers: Sequence[str] = DUPLICATE_REVERT_MARKERS,
    ) -> None:
        try:
            address = AsyncWeb3.to_checksum_address(contract_address)
        except (TypeError, ValueError):
            raise ValidationError(
                f"ZKYC_CONTRACT_ADDRESS is not a valid address: {contract_address!r}"
            ) from None
        self._w3 = w3 if w3 is not None else AsyncWeb3(AsyncHTTPProvider(rpc_url))
        self._chain_id = chain_id
        self._duplicate_markers = tuple(m.lower() for m in duplicate_markers)
        self._contract = self._w3.eth.contract(address=address, abi=COMMITMENT_ABI)
        # Sends are serialized; next nonce per lowercased sender address.
        self._nonce_lock = asyncio.Lock()
        self._next_nonce: dict[str, int] = {}

    @classmethod
    def from_config(cls, config: LedgerConfig) -> Web3LedgerGateway:
        config.require_live()
        return cls(
            rpc_url=config.rpc_url,
            contract_address=config.contract_address,
            chain_id=config.chain_id,
        )

    @property
    def chain_id(self) -> int:
        return self._chain_id

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
        if list(type_args):
            raise SubmissionFailed("EVM contracts take no type arguments")

        try:
            call = getattr(self._contract.functions, function_id)(*args)
            async with self._nonce_lock:
                nonce = await self._reserve_nonce(signer.address)
                tx = await call.build_transaction({
                    "from": signer.address,
                    "nonce": nonce,
                    "chainId": self._chain_id,
                })
                signed = signer.sign_transaction(tx)
                raw_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
                self._next_nonce[signer.address.lower()] = nonce + 1
        except ContractLogicError as exc:
            if self._is_duplicate_revert(exc):
                raise DuplicateCommitment(f"Commitment already exists: {exc}") from exc
            raise SubmissionFailed(f"Contract rejected {function_id}: {exc}") from exc
        except Exception as exc:  # signing, nonce lookup or transport
            raise SubmissionFailed(f"Could not submit {function_id}: {exc}") from exc

        tx_hash = _to_hex(raw_hash)
        logger.info("Sent %s tx %s", function_id, tx_hash)
        return PendingHandle(
            tx_hash=tx_hash,
            function_id=function_id,
            args=tuple(args),
            sender=signer.address,
        )

    async def await_finality(self, handle: PendingHandle, timeout: float) -> str:
        try:
            receipt = await self._w3.eth.wait_for_transaction_receipt(
                handle.tx_hash, timeout=timeout,
            )
        except TimeExhausted as exc:
            raise FinalityTimeout(
                f"Transaction {handle.tx_hash} not final after {timeout}s",
                tx_hash=handle.tx_hash,
            ) from exc
        except Exception as exc:
            # Lost contact after broadcast: the outcome is just as ambiguous.
            raise FinalityTimeout(
                f"Lost track of transaction {handle.tx_hash}: {exc}",
                tx_hash=handle.tx_hash,
            ) from exc

        if receipt["status"] != 1:
            if await self._reverted_as_duplicate(handle):
                raise DuplicateCommitment(
                    f"Transaction {handle.tx_hash} reverted: commitment already exists"
                )
            raise SubmissionFailed(
                f"Transaction {handle.tx_hash} reverted in block {receipt['blockNumber']}"
            )

        logger.info("Confirmed %s in block %s", handle.tx_hash, receipt["blockNumber"])
        return handle.tx_hash

    async def call_read_only(
        self,
        function_id: str,
        type_args: Sequence[Any],
        args: Sequence[Any],
    ) -> Any:
        if list(type_args):
            raise LedgerReadError("EVM view functions take no type arguments")
        try:
            return await getattr(self._contract.functions, function_id)(*args).call()
        except Exception as exc:
            raise LedgerReadError(f"View call {function_id} failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _reserve_nonce(self, sender: str) -> int:
        """Next free nonce: the pool's pending count, or past our own last send."""
        pending = await self._w3.eth.get_transaction_count(sender, "pending")
        return max(pending, self._next_nonce.get(sender.lower(), 0))

    def _is_duplicate_revert(self, exc: ContractLogicError) -> bool:
        reason = str(exc).lower()
        return any(marker in reason for marker in self._duplicate_markers)

    async def _reverted_as_duplicate(self, handle: PendingHandle) -> bool:
        """A reverted publish whose hash is now stored lost a race to another writer."""
        if handle.function_id != PUBLISH_FUNCTION or not handle.args:
            return False
        try:
            return await self.call_read_only(VERIFY_FUNCTION, [], [handle.args[0]]) is True
        except LedgerReadError:
            return False


def _to_hex(value: Any) -> str:
    """Render a transaction hash as a 0x-prefixed hex string."""
    text = value if isinstance(value, str) else value.hex()
    return text if text.startswith("0x") else f"0x{text}"
