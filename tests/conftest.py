"""Pytest configuration and shared fixtures."""

from dataclasses import dataclass

import pytest

from zkyc.ledger.memory import InMemoryLedgerGateway

# Fixed "now" for every test: scenario validity windows must lie in the future.
NOW = 1700000000.0


@dataclass(frozen=True)
class StubSigner:
    """Signing identity that never signs; the in-memory ledger only reads the address."""
    address: str = "0x00000000000000000000000000000000000000a1"

    def sign_transaction(self, transaction_dict: dict) -> None:
        return None


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def signer() -> StubSigner:
    return StubSigner()


@pytest.fixture
def ledger(clock) -> InMemoryLedgerGateway:
    return InMemoryLedgerGateway(clock=clock)
