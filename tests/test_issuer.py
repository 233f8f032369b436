"""Tests for the commitment issuer — proves submit-then-confirm and failure surfacing."""

import asyncio

import pytest

from zkyc.engine.issuer import CommitmentIssuer
from zkyc.errors import (
    DuplicateCommitment,
    FinalityTimeout,
    InvalidParameters,
    SubmissionFailed,
    ValidationError,
)
from zkyc.ledger.gateway import PendingHandle
from zkyc.ledger.memory import InMemoryLedgerGateway
from zkyc.models.commitment import CommitmentState


ID = b"\x22" * 32
FUTURE = 1731536000


@pytest.fixture
def issuer(ledger: InMemoryLedgerGateway, signer, clock) -> CommitmentIssuer:
    return CommitmentIssuer(ledger, signer, finality_timeout=0.05, clock=clock)


class HangingGateway:
    """Accepts submissions but never answers the finality wait."""

    async def submit_transaction(self, function_id, type_args, args, signer) -> PendingHandle:
        return PendingHandle(tx_hash="0xfeed", function_id=function_id, args=tuple(args))

    async def await_finality(self, handle: PendingHandle, timeout: float) -> str:
        await asyncio.sleep(3600)
        return handle.tx_hash

    async def call_read_only(self, function_id, type_args, args):
        return False


class TestIssue:
    @pytest.mark.asyncio
    async def test_success_returns_published_receipt(
        self, issuer: CommitmentIssuer, ledger: InMemoryLedgerGateway,
    ) -> None:
        receipt = await issuer.issue(ID, 1, FUTURE)
        assert receipt.tx_hash
        assert receipt.identifier == ID
        assert receipt.issuer_id == 1
        assert receipt.validity_window == FUTURE
        assert receipt.state == CommitmentState.PUBLISHED
        assert ledger.commitments[ID].validity_window == FUTURE

    @pytest.mark.asyncio
    async def test_bytearray_identifier_accepted(
        self, issuer: CommitmentIssuer, ledger: InMemoryLedgerGateway,
    ) -> None:
        receipt = await issuer.issue(bytearray(ID), 1, FUTURE)
        assert receipt.identifier == ID
        assert ID in ledger.commitments

    @pytest.mark.asyncio
    async def test_signer_is_the_sender(self, issuer: CommitmentIssuer, signer) -> None:
        assert issuer.signer_address == signer.address


class TestWriteOnce:
    @pytest.mark.asyncio
    async def test_second_issue_is_duplicate(
        self, issuer: CommitmentIssuer, ledger: InMemoryLedgerGateway,
    ) -> None:
        await issuer.issue(ID, 1, FUTURE)
        with pytest.raises(DuplicateCommitment):
            await issuer.issue(ID, 2, FUTURE + 1000)
        stored = ledger.commitments[ID]
        assert (stored.issuer_id, stored.validity_window) == (1, FUTURE)

    @pytest.mark.asyncio
    async def test_concurrent_same_identifier_one_wins(
        self, issuer: CommitmentIssuer, ledger: InMemoryLedgerGateway,
    ) -> None:
        results = await asyncio.gather(
            issuer.issue(ID, 1, FUTURE),
            issuer.issue(ID, 2, FUTURE + 1),
            return_exceptions=True,
        )
        duplicates = [r for r in results if isinstance(r, DuplicateCommitment)]
        receipts = [r for r in results if not isinstance(r, BaseException)]
        assert len(duplicates) == 1
        assert len(receipts) == 1
        assert ledger.commitments[ID].issuer_id == receipts[0].issuer_id

    @pytest.mark.asyncio
    async def test_concurrent_distinct_identifiers_all_publish(
        self, issuer: CommitmentIssuer, ledger: InMemoryLedgerGateway,
    ) -> None:
        identifiers = [bytes([i]) * 32 for i in range(1, 21)]
        receipts = await asyncio.gather(*(issuer.issue(i, 1, FUTURE) for i in identifiers))
        assert {r.identifier for r in receipts} == set(identifiers)
        assert len({r.tx_hash for r in receipts}) == len(identifiers)
        assert set(ledger.commitments) == set(identifiers)


class TestPreconditions:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("identifier,issuer_id,validity_window", [
        (b"\x22" * 31, 1, FUTURE),
        ("22" * 32, 1, FUTURE),
        (ID, 0, FUTURE),
        (ID, -5, FUTURE),
        (ID, True, FUTURE),
        (ID, "1", FUTURE),
        (ID, 2**64, FUTURE),
        (ID, 1, 1700000000),        # equal to now
        (ID, 1, 1600000000),        # in the past
        (ID, 1, float(FUTURE)),
        (ID, 1, 2**64),
    ])
    async def test_rejected_before_network(
        self,
        issuer: CommitmentIssuer,
        ledger: InMemoryLedgerGateway,
        identifier,
        issuer_id,
        validity_window,
    ) -> None:
        with pytest.raises(InvalidParameters):
            await issuer.issue(identifier, issuer_id, validity_window)
        assert ledger.submit_calls == 0

    def test_invalid_parameters_is_a_validation_error(self) -> None:
        assert issubclass(InvalidParameters, ValidationError)

    def test_non_positive_timeout_rejected(self, ledger: InMemoryLedgerGateway, signer) -> None:
        with pytest.raises(ValueError):
            CommitmentIssuer(ledger, signer, finality_timeout=0)


class TestNetworkFailures:
    @pytest.mark.asyncio
    async def test_submission_failed_is_surfaced(
        self, issuer: CommitmentIssuer, ledger: InMemoryLedgerGateway,
    ) -> None:
        ledger.fail_submissions = True
        with pytest.raises(SubmissionFailed):
            await issuer.issue(ID, 1, FUTURE)
        assert ledger.submit_calls == 1  # no automatic retry

    @pytest.mark.asyncio
    async def test_unauthorized_signer_is_submission_failure(self, signer, clock) -> None:
        ledger = InMemoryLedgerGateway(authorized_senders=["0x" + "bb" * 20], clock=clock)
        issuer = CommitmentIssuer(ledger, signer, finality_timeout=0.05, clock=clock)
        with pytest.raises(SubmissionFailed, match="not an authorized issuer"):
            await issuer.issue(ID, 1, FUTURE)

    @pytest.mark.asyncio
    async def test_finality_timeout_carries_tx_hash(
        self, issuer: CommitmentIssuer, ledger: InMemoryLedgerGateway,
    ) -> None:
        ledger.withhold_finality = True
        with pytest.raises(FinalityTimeout) as excinfo:
            await issuer.issue(ID, 1, FUTURE)
        assert excinfo.value.tx_hash
        assert ledger.submit_calls == 1
        # The transaction may still land later.
        ledger.finalize_pending()
        assert ID in ledger.commitments

    @pytest.mark.asyncio
    async def test_gateway_ignoring_timeout_is_bounded(
        self, signer, clock, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr("zkyc.engine.issuer.FINALITY_GRACE_SECONDS", 0.0)
        issuer = CommitmentIssuer(HangingGateway(), signer, finality_timeout=0.01, clock=clock)
        with pytest.raises(FinalityTimeout) as excinfo:
            await issuer.issue(ID, 1, FUTURE)
        assert excinfo.value.tx_hash == "0xfeed"


class TestLifecycle:
    @pytest.fixture
    def transitions(self, monkeypatch: pytest.MonkeyPatch) -> list:
        from zkyc.engine import lifecycle

        seen = []

        def recording_advance(current, target):
            seen.append((current, target))
            return lifecycle.advance(current, target)

        monkeypatch.setattr("zkyc.engine.issuer.advance", recording_advance)
        return seen

    @pytest.mark.asyncio
    async def test_success_walks_pending_to_published(
        self, issuer: CommitmentIssuer, transitions: list,
    ) -> None:
        await issuer.issue(ID, 1, FUTURE)
        assert transitions == [
            (CommitmentState.ABSENT, CommitmentState.PENDING),
            (CommitmentState.PENDING, CommitmentState.PUBLISHED),
        ]

    @pytest.mark.asyncio
    async def test_rejected_submission_returns_to_absent(
        self, issuer: CommitmentIssuer, ledger: InMemoryLedgerGateway, transitions: list,
    ) -> None:
        ledger.fail_submissions = True
        with pytest.raises(SubmissionFailed):
            await issuer.issue(ID, 1, FUTURE)
        assert transitions[-1] == (CommitmentState.PENDING, CommitmentState.ABSENT)

    @pytest.mark.asyncio
    async def test_duplicate_at_inclusion_returns_to_absent(
        self, issuer: CommitmentIssuer, transitions: list,
    ) -> None:
        await asyncio.gather(
            issuer.issue(ID, 1, FUTURE),
            issuer.issue(ID, 2, FUTURE),
            return_exceptions=True,
        )
        assert (CommitmentState.PENDING, CommitmentState.ABSENT) in transitions

    @pytest.mark.asyncio
    async def test_finality_timeout_stays_pending(
        self, issuer: CommitmentIssuer, ledger: InMemoryLedgerGateway, transitions: list,
    ) -> None:
        ledger.withhold_finality = True
        with pytest.raises(FinalityTimeout):
            await issuer.issue(ID, 1, FUTURE)
        assert transitions == [(CommitmentState.ABSENT, CommitmentState.PENDING)]
