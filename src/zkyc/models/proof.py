"""Proof record model — the off-chain verification result being committed.

A proof record is produced by an external validator. Only records whose
verification outcome is positive may be committed; the outcome flag is
trusted input and is not re-derived here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from zkyc.errors import ValidationError


@dataclass(frozen=True)
class ProofResult:
    """Outcome section of a proof record."""
    verify_timestamp: int
    data: str
    verify_outcome: bool


@dataclass(frozen=True)
class ProofRecord:
    """A single off-chain verification proof.

    The four committed fields are ``task``, ``result.verify_timestamp``,
    ``validator_address`` and ``result.data``. The outcome flag gates
    eligibility but is not part of the commitment.
    """
    task: str
    result: ProofResult
    validator_address: str

    @property
    def is_eligible(self) -> bool:
        """True if the proof passed verification and may be committed."""
        return self.result.verify_outcome is True

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> ProofRecord:
        """Build a proof record from its wire representation.

        Accepts both the snake_case keys emitted by validators
        (``verify_timestamp``, ``verify_result``, ``validator_address``)
        and the camelCase keys (``verifyTimestamp``, ``verifyOutcome``,
        ``validatorAddress``).

        Raises:
            ValidationError: if a field is missing or has the wrong type.
        """
        if not isinstance(payload, Mapping):
            raise ValidationError("Proof must be a JSON object")

        missing = [
            name for name, value in (
                ("task", payload.get("task")),
                ("result", payload.get("result")),
                ("validatorAddress", _first(payload, "validatorAddress", "validator_address")),
            )
            if value in (None, "")
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        raw_result = payload["result"]
        if not isinstance(raw_result, Mapping):
            raise ValidationError("Field 'result' must be an object")

        timestamp = _first(raw_result, "verifyTimestamp", "verify_timestamp")
        data = raw_result.get("data")
        outcome = _first(raw_result, "verifyOutcome", "verify_result")

        result_missing = [
            name for name, value in (
                ("result.verifyTimestamp", timestamp),
                ("result.data", data),
                ("result.verifyOutcome", outcome),
            )
            if value is None
        ]
        if result_missing:
            raise ValidationError(f"Missing required fields: {', '.join(result_missing)}")

        record = cls(
            task=payload["task"],
            result=ProofResult(
                verify_timestamp=timestamp,
                data=data,
                verify_outcome=outcome,
            ),
            validator_address=_first(payload, "validatorAddress", "validator_address"),
        )
        record.validate()
        return record

    def validate(self) -> None:
        """Check field types. Raises ValidationError on the first problem."""
        if not isinstance(self.task, str) or not self.task:
            raise ValidationError("Field 'task' must be a non-empty string")
        if not isinstance(self.validator_address, str) or not self.validator_address:
            raise ValidationError("Field 'validatorAddress' must be a non-empty string")
        # bool is an int subclass; a timestamp of True is not a timestamp
        ts = self.result.verify_timestamp
        if isinstance(ts, bool) or not isinstance(ts, int):
            raise ValidationError("Field 'result.verifyTimestamp' must be an integer")
        if ts < 0:
            raise ValidationError("Field 'result.verifyTimestamp' must not be negative")
        if not isinstance(self.result.data, str):
            raise ValidationError("Field 'result.data' must be a string")
        if not isinstance(self.result.verify_outcome, bool):
            raise ValidationError("Field 'result.verifyOutcome' must be a boolean")


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    """Return the value of the first key present in payload, else None."""
    for key in keys:
        if key in payload:
            return payload[key]
    return None
