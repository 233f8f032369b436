"""Commitment service — unified facade for issuance and verification.

This is the primary interface for programmatic access. It orchestrates:
- Proof intake (wire-format parsing, eligibility check)
- Identifier derivation
- Issuance (submit, await finality)
- Verification (existence, then detail)

All operations produce typed results. Protocol errors never escape as
exceptions: each failure is reported with a stable ``error_kind`` so
callers can tell a safe-to-retry failure from an ambiguous one.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Union

from zkyc.config import LedgerConfig
from zkyc.crypto.hashing import derive_commitment_id
from zkyc.engine.issuer import CommitmentIssuer
from zkyc.engine.lifecycle import state_at
from zkyc.engine.verifier import CommitmentVerifier
from zkyc.errors import CommitmentError, FinalityTimeout, ValidationError
from zkyc.ledger.gateway import LedgerGateway, Signer
from zkyc.models.commitment import identifier_to_hex, parse_identifier
from zkyc.models.proof import ProofRecord


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)
    error_kind: Optional[str] = None


class CommitmentService:
    """Caller-facing facade over the issuer and verifier.

    Usage:
        config = LedgerConfig.from_env()
        service = CommitmentService.from_config(config)

        result = await service.issue_from_proof(proof_payload)
        result = await service.issue_raw("0xabc...", 1, 1731536000)
        result = await service.verify("0xabc...")

    Verify-only deployments may omit the signer; issuance then fails
    with a validation error.
    """

    def __init__(
        self,
        config: LedgerConfig,
        gateway: LedgerGateway,
        signer: Optional[Signer] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._clock = clock
        self._started = clock()
        self._issuer: Optional[CommitmentIssuer] = None
        if signer is not None:
            self._issuer = CommitmentIssuer(
                gateway,
                signer,
                finality_timeout=config.finality_timeout,
                clock=clock,
            )
        self._verifier = CommitmentVerifier(
            gateway,
            read_timeout=config.read_timeout,
            strict=config.strict_reads,
        )

    @classmethod
    def from_config(cls, config: LedgerConfig) -> CommitmentService:
        """Build a service against the live ledger described by config."""
        from zkyc.ledger.web3_gateway import Web3LedgerGateway

        gateway = Web3LedgerGateway.from_config(config)
        signer = config.signing_credential() if config.private_key else None
        return cls(config, gateway, signer=signer)

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    async def issue_from_proof(
        self,
        proof: Union[ProofRecord, Mapping[str, Any]],
        issuer_id: Optional[int] = None,
        validity_window: Optional[int] = None,
    ) -> ServiceResult:
        """Commit a verified proof.

        Rejects proofs whose verification outcome is false before any
        ledger interaction. Issuer id and validity window default to the
        configured values (validity: now + configured period).
        """
        try:
            record = proof if isinstance(proof, ProofRecord) else ProofRecord.from_dict(proof)
            record.validate()
            if not record.is_eligible:
                raise ValidationError("Proof verification failed (verifyOutcome is false)")
        except ValidationError as exc:
            return _failure(exc)

        identifier = derive_commitment_id(record)
        if issuer_id is None:
            issuer_id = self._config.default_issuer_id
        if validity_window is None:
            validity_window = int(self._clock()) + self._config.default_validity_seconds

        data = {
            "commitmentIdentifier": identifier_to_hex(identifier),
            "issuerId": issuer_id,
            "validityWindow": validity_window,
        }
        return await self._issue(identifier, issuer_id, validity_window, data)

    async def issue_raw(
        self,
        identifier: Union[bytes, str],
        issuer_id: int,
        validity_window: int,
    ) -> ServiceResult:
        """Commit a caller-supplied identifier (hex string or 32 bytes)."""
        try:
            raw = parse_identifier(identifier)
        except ValidationError as exc:
            return _failure(exc)
        return await self._issue(raw, issuer_id, validity_window, {})

    async def _issue(
        self,
        identifier: bytes,
        issuer_id: int,
        validity_window: int,
        data: dict[str, Any],
    ) -> ServiceResult:
        if self._issuer is None:
            return _failure(
                ValidationError("No signing credential configured; issuance is disabled"),
                data,
            )
        try:
            receipt = await self._issuer.issue(identifier, issuer_id, validity_window)
        except FinalityTimeout as exc:
            # Ambiguous: the caller should re-query, not re-submit.
            return _failure(exc, {**data, "transactionHash": exc.tx_hash})
        except CommitmentError as exc:
            return _failure(exc, data)

        data = {**data, "transactionHash": receipt.tx_hash}
        link = self._config.explorer_link(receipt.tx_hash)
        if link:
            data["explorerUrl"] = link
        return ServiceResult(success=True, data=data)

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    async def verify(
        self,
        identifier: Union[bytes, str],
        at: Optional[float] = None,
    ) -> ServiceResult:
        """Report whether a commitment exists, with its issuer and expiry.

        Expiry is left to the caller. A caller that passes its own clock
        reading as ``at`` also gets the derived ``state`` at that instant.
        """
        try:
            raw = parse_identifier(identifier)
            result = await self._verifier.verify(raw)
        except CommitmentError as exc:
            return _failure(exc)
        data = result.to_dict()
        if at is not None:
            data["state"] = state_at(result, at).value
        return ServiceResult(success=True, data=data)

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def status(self) -> dict[str, Any]:
        """Liveness summary. Times are in milliseconds."""
        now = self._clock()
        return {
            **config_status(self._config, now),
            "uptime": int((now - self._started) * 1000),
            "issuanceEnabled": self._issuer is not None,
            "strictReads": self._verifier.strict,
        }


def config_status(config: LedgerConfig, now: float) -> dict[str, Any]:
    """Liveness summary from configuration alone; never contacts the ledger."""
    return {
        "status": "OK",
        "uptime": 0,
        "timestamp": int(now * 1000),
        "chainId": config.chain_id,
        "ledgerConfigured": bool(config.rpc_url and config.contract_address),
        "issuanceEnabled": bool(config.private_key),
        "strictReads": config.strict_reads,
    }


def _failure(exc: CommitmentError, data: Optional[dict[str, Any]] = None) -> ServiceResult:
    return ServiceResult(
        success=False,
        errors=[str(exc)],
        data=dict(data or {}),
        error_kind=exc.kind,
    )
