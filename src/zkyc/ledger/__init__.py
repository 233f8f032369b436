"""Ledger gateways — the boundary between the protocol and the chain."""

from zkyc.ledger.gateway import LedgerGateway, PendingHandle, Signer
from zkyc.ledger.memory import InMemoryLedgerGateway

__all__ = ["LedgerGateway", "PendingHandle", "Signer", "InMemoryLedgerGateway"]
