"""ABI of the on-chain commitment contract.

    publish_commitment(bytes32 hash, uint64 issuer_id, uint64 validity_window)
    verify(bytes32 hash) view returns (bool)
    get_commitment(bytes32 hash) view returns (uint64 issuer_id, uint64 validity_window)

``publish_commitment`` reverts when the hash is already stored, and
``get_commitment`` reverts when it is not.
"""

from __future__ import annotations

from typing import Any

COMMITMENT_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "publish_commitment",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "hash", "type": "bytes32"},
            {"name": "issuer_id", "type": "uint64"},
            {"name": "validity_window", "type": "uint64"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "verify",
        "stateMutability": "view",
        "inputs": [{"name": "hash", "type": "bytes32"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "get_commitment",
        "stateMutability": "view",
        "inputs": [{"name": "hash", "type": "bytes32"}],
        "outputs": [
            {"name": "issuer_id", "type": "uint64"},
            {"name": "validity_window", "type": "uint64"},
        ],
    },
]
