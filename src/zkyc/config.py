"""Runtime configuration — ledger endpoint, signing credential and timeouts.

Values come from the process environment, optionally populated from a
``.env`` file:

    ZKYC_RPC_URL=https://sepolia.infura.io/v3/...
    ZKYC_CONTRACT_ADDRESS=0x...
    ZKYC_PRIVATE_KEY=0x...

The signing credential is built on demand and handed to the issuer
explicitly. Nothing here is a module-level singleton.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from eth_account import Account
from eth_account.signers.local import LocalAccount

from zkyc.errors import ValidationError

ENV_PREFIX = "ZKYC_"
SECONDS_PER_YEAR = 365 * 24 * 60 * 60


@dataclass(frozen=True)
class SigningCredential:
    """Immutable issuance identity wrapping an eth-account key.

    Satisfies the gateway's Signer Protocol.
    """
    account: LocalAccount = field(repr=False)

    @classmethod
    def from_private_key(cls, private_key: str) -> SigningCredential:
        try:
            account = Account.from_key(private_key)
        except Exception as exc:
            raise ValidationError(f"Invalid signing key: {exc}") from None
        return cls(account=account)

    @property
    def address(self) -> str:
        return self.account.address

    def sign_transaction(self, transaction_dict: dict[str, Any]) -> Any:
        return self.account.sign_transaction(transaction_dict)

    def __repr__(self) -> str:
        return f"SigningCredential(address={self.address})"


@dataclass(frozen=True)
class LedgerConfig:
    """Connection, timing and issuance defaults."""
    rpc_url: str = ""
    contract_address: str = ""
    private_key: str = field(default="", repr=False)
    chain_id: int = 11155111  # Sepolia
    finality_timeout: float = 120.0
    read_timeout: float = 10.0
    strict_reads: bool = False
    default_issuer_id: int = 1
    default_validity_seconds: int = SECONDS_PER_YEAR
    explorer_url: str = "https://sepolia.etherscan.io/tx/{tx_hash}"

    def __post_init__(self) -> None:
        if self.finality_timeout <= 0:
            raise ValidationError("finality_timeout must be positive")
        if self.read_timeout <= 0:
            raise ValidationError("read_timeout must be positive")
        if self.read_timeout > self.finality_timeout:
            raise ValidationError("read_timeout must not exceed finality_timeout")
        if self.default_issuer_id <= 0:
            raise ValidationError("default_issuer_id must be a positive integer")
        if self.default_validity_seconds <= 0:
            raise ValidationError("default_validity_seconds must be positive")

    @classmethod
    def from_env(
        cls,
        env_file: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> LedgerConfig:
        """Load configuration from ``ZKYC_*`` variables.

        When ``environ`` is given it is used as-is and no ``.env`` file is
        read. Otherwise ``env_file`` (or the nearest ``.env``) is loaded
        into the process environment first, without overriding variables
        already set.
        """
        if environ is None:
            if env_file is not None:
                load_dotenv(env_file)
            else:
                load_dotenv()
            environ = os.environ

        def get(name: str) -> Optional[str]:
            value = environ.get(ENV_PREFIX + name)
            return value.strip() if value is not None and value.strip() else None

        kwargs: dict[str, Any] = {}
        for name, key, parse in (
            ("RPC_URL", "rpc_url", str),
            ("CONTRACT_ADDRESS", "contract_address", str),
            ("PRIVATE_KEY", "private_key", str),
            ("CHAIN_ID", "chain_id", int),
            ("FINALITY_TIMEOUT", "finality_timeout", float),
            ("READ_TIMEOUT", "read_timeout", float),
            ("STRICT_READS", "strict_reads", _parse_bool),
            ("DEFAULT_ISSUER_ID", "default_issuer_id", int),
            ("VALIDITY_SECONDS", "default_validity_seconds", int),
            ("EXPLORER_URL", "explorer_url", str),
        ):
            raw = get(name)
            if raw is None:
                continue
            try:
                kwargs[key] = parse(raw)
            except ValueError:
                raise ValidationError(f"{ENV_PREFIX}{name} has an invalid value: {raw!r}") from None
        return cls(**kwargs)

    def require_live(self) -> None:
        """Fail if the settings needed to reach a real ledger are missing."""
        missing = [
            ENV_PREFIX + name for name, value in (
                ("RPC_URL", self.rpc_url),
                ("CONTRACT_ADDRESS", self.contract_address),
            )
            if not value
        ]
        if missing:
            raise ValidationError(f"Missing configuration: {', '.join(missing)}")

    def signing_credential(self) -> SigningCredential:
        if not self.private_key:
            raise ValidationError(f"Missing configuration: {ENV_PREFIX}PRIVATE_KEY")
        return SigningCredential.from_private_key(self.private_key)

    def explorer_link(self, tx_hash: str) -> str:
        if not self.explorer_url:
            return ""
        return self.explorer_url.format(tx_hash=tx_hash)


def _parse_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(raw)
