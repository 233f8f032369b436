"""Tests for runtime configuration — proves env parsing and credential handling."""

import os

import pytest
from eth_account import Account

from zkyc.config import LedgerConfig, SigningCredential
from zkyc.errors import ValidationError


class TestFromEnv:
    def test_defaults_when_unset(self) -> None:
        config = LedgerConfig.from_env(environ={})
        assert config.rpc_url == ""
        assert config.chain_id == 11155111
        assert config.finality_timeout == 120.0
        assert config.read_timeout == 10.0
        assert config.strict_reads is False
        assert config.default_issuer_id == 1
        assert config.default_validity_seconds == 365 * 24 * 60 * 60

    def test_values_parsed(self) -> None:
        config = LedgerConfig.from_env(environ={
            "ZKYC_RPC_URL": "http://localhost:8545",
            "ZKYC_CONTRACT_ADDRESS": "0x" + "ab" * 20,
            "ZKYC_CHAIN_ID": "31337",
            "ZKYC_FINALITY_TIMEOUT": "30",
            "ZKYC_READ_TIMEOUT": "2.5",
            "ZKYC_STRICT_READS": "yes",
            "ZKYC_DEFAULT_ISSUER_ID": "7",
            "ZKYC_VALIDITY_SECONDS": "86400",
        })
        assert config.rpc_url == "http://localhost:8545"
        assert config.chain_id == 31337
        assert config.finality_timeout == 30.0
        assert config.read_timeout == 2.5
        assert config.strict_reads is True
        assert config.default_issuer_id == 7
        assert config.default_validity_seconds == 86400

    def test_blank_values_fall_back_to_defaults(self) -> None:
        config = LedgerConfig.from_env(environ={"ZKYC_CHAIN_ID": "   "})
        assert config.chain_id == 11155111

    @pytest.mark.parametrize("name,value", [
        ("ZKYC_CHAIN_ID", "sepolia"),
        ("ZKYC_FINALITY_TIMEOUT", "soon"),
        ("ZKYC_STRICT_READS", "maybe"),
    ])
    def test_invalid_value_rejected(self, name: str, value: str) -> None:
        with pytest.raises(ValidationError, match=name):
            LedgerConfig.from_env(environ={name: value})

    def test_env_file_loaded(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ZKYC_RPC_URL", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("ZKYC_RPC_URL=http://node.test:8545\n", encoding="utf-8")
        try:
            config = LedgerConfig.from_env(env_file=env_file)
        finally:
            os.environ.pop("ZKYC_RPC_URL", None)
        assert config.rpc_url == "http://node.test:8545"


class TestValidation:
    @pytest.mark.parametrize("kwargs", [
        {"finality_timeout": 0},
        {"read_timeout": -1},
        {"finality_timeout": 5, "read_timeout": 10},
        {"default_issuer_id": 0},
        {"default_validity_seconds": 0},
    ])
    def test_bad_settings_rejected(self, kwargs) -> None:
        with pytest.raises(ValidationError):
            LedgerConfig(**kwargs)

    def test_require_live_lists_missing(self) -> None:
        with pytest.raises(ValidationError, match="ZKYC_RPC_URL, ZKYC_CONTRACT_ADDRESS"):
            LedgerConfig().require_live()

    def test_require_live_passes(self) -> None:
        LedgerConfig(rpc_url="http://localhost:8545", contract_address="0x" + "ab" * 20).require_live()

    def test_private_key_not_in_repr(self) -> None:
        config = LedgerConfig(private_key="0x" + "11" * 32)
        assert "11" * 32 not in repr(config)


class TestSigningCredential:
    def test_missing_key(self) -> None:
        with pytest.raises(ValidationError, match="ZKYC_PRIVATE_KEY"):
            LedgerConfig().signing_credential()

    def test_invalid_key(self) -> None:
        with pytest.raises(ValidationError, match="Invalid signing key"):
            LedgerConfig(private_key="not-a-key").signing_credential()

    def test_credential_from_key(self) -> None:
        account = Account.create()
        credential = LedgerConfig(private_key=account.key.hex()).signing_credential()
        assert isinstance(credential, SigningCredential)
        assert credential.address == account.address
        assert account.key.hex() not in repr(credential)

    def test_signs_transactions(self) -> None:
        account = Account.create()
        credential = SigningCredential.from_private_key(account.key.hex())
        signed = credential.sign_transaction({
            "to": Account.create().address,
            "value": 0,
            "gas": 21000,
            "gasPrice": 1,
            "nonce": 0,
            "chainId": 11155111,
        })
        assert signed.raw_transaction


class TestExplorerLink:
    def test_default_template(self) -> None:
        assert LedgerConfig().explorer_link("0xabc") == "https://sepolia.etherscan.io/tx/0xabc"

    def test_disabled(self) -> None:
        assert LedgerConfig(explorer_url="").explorer_link("0xabc") == ""
