"""zKYC commitments — anchor proof commitments on a ledger and verify them."""

__version__ = "0.1.0"
