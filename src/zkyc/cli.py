"""zKYC CLI — command-line interface for commitment issuance and lookup.

Usage:
    zkyc status
    zkyc commit-proof --file proof.json
    zkyc commit --hash 0xabc... --issuer-id 1 --validity-window 1731536000
    zkyc verify --hash 0xabc...

Configuration is read from ZKYC_* environment variables or a .env file
(see zkyc.config).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from pathlib import Path
from typing import Optional

from zkyc.config import LedgerConfig
from zkyc.errors import DuplicateCommitment, ValidationError
from zkyc.service import CommitmentService, ServiceResult, config_status


def _make_service(env_file: Optional[Path]) -> CommitmentService:
    """Create a CommitmentService against the configured live ledger."""
    config = LedgerConfig.from_env(env_file=env_file)
    return CommitmentService.from_config(config)


def _report(result: ServiceResult) -> int:
    if result.success:
        print(json.dumps(result.data, indent=2))
        return 0
    if result.error_kind == DuplicateCommitment.kind:
        # The desired end state already holds.
        print(f"Already committed: {'; '.join(result.errors)}", file=sys.stderr)
        if result.data:
            print(json.dumps(result.data, indent=2))
        return 0
    print(f"Failed: {result.error_kind}: {'; '.join(result.errors)}", file=sys.stderr)
    if result.data.get("transactionHash"):
        print(
            f"Pending transaction: {result.data['transactionHash']} "
            "(re-run verify before re-submitting)",
            file=sys.stderr,
        )
    return 1


def cmd_status(args: argparse.Namespace) -> int:
    """Report health from configuration; answers even without ledger settings."""
    config = LedgerConfig.from_env(env_file=args.env_file)
    print(json.dumps(config_status(config, time.time()), indent=2))
    return 0


def cmd_commit_proof(args: argparse.Namespace) -> int:
    """Commit a verified proof read from a JSON file (or - for stdin)."""
    try:
        if str(args.file) == "-":
            payload = json.load(sys.stdin)
        else:
            payload = json.loads(Path(args.file).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValidationError(f"Could not read proof: {exc}") from None

    service = _make_service(args.env_file)
    result = asyncio.run(service.issue_from_proof(
        payload,
        issuer_id=args.issuer_id,
        validity_window=args.validity_window,
    ))
    return _report(result)


def cmd_commit(args: argparse.Namespace) -> int:
    """Commit a raw identifier."""
    service = _make_service(args.env_file)
    result = asyncio.run(service.issue_raw(
        args.hash,
        issuer_id=args.issuer_id,
        validity_window=args.validity_window,
    ))
    return _report(result)


def cmd_verify(args: argparse.Namespace) -> int:
    service = _make_service(args.env_file)
    result = asyncio.run(service.verify(args.hash, at=time.time()))
    return _report(result)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zkyc",
        description="zKYC commitments — anchor and verify proof commitments on-chain",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file (default: nearest .env)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    # status
    sub.add_parser("status", help="Show service status")

    # commit-proof
    p_proof = sub.add_parser("commit-proof", help="Commit a verified proof")
    p_proof.add_argument("--file", required=True, help="Proof JSON file, or - for stdin")
    p_proof.add_argument("--issuer-id", type=int, help="Issuer id (default: configured)")
    p_proof.add_argument(
        "--validity-window", type=int,
        help="Expiry as a Unix timestamp (default: now + configured period)",
    )

    # commit
    p_commit = sub.add_parser("commit", help="Commit a raw commitment hash")
    p_commit.add_argument("--hash", required=True, help="32-byte hex commitment hash")
    p_commit.add_argument("--issuer-id", type=int, required=True, help="Issuer id")
    p_commit.add_argument(
        "--validity-window", type=int, required=True,
        help="Expiry as a Unix timestamp",
    )

    # verify
    p_verify = sub.add_parser("verify", help="Look up a commitment")
    p_verify.add_argument("--hash", required=True, help="32-byte hex commitment hash")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "status": cmd_status,
        "commit-proof": cmd_commit_proof,
        "commit": cmd_commit,
        "verify": cmd_verify,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    try:
        return handler(args)
    except ValidationError as exc:
        print(f"Failed: {exc.kind}: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
