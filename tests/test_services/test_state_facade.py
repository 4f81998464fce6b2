"""Tests for the EscrowStateFacade."""

from __future__ import annotations

import pytest
from fakes import FakeLedger

from escrow_reconciler import EscrowStateFacade
from escrow_reconciler.domain.enums import DisputeStatus, EventKind, Ruling, TransactionStatus
from escrow_reconciler.domain.exceptions import ConfigurationError, LedgerReadError, MetaEvidenceError
from escrow_reconciler.domain.models import TransactionState


class _Clock:
    """Returns ``now`` and counts how often it was sampled."""

    def __init__(self, now: int) -> None:
        self.now = now
        self.samples = 0

    def __call__(self) -> int:
        self.samples += 1
        return self.now


@pytest.fixture
def quiet_ledger(ledger: FakeLedger) -> FakeLedger:
    ledger.add_transaction("42", status=0, last_interaction=1000, timeout_payment=600)
    return ledger


class TestConstruction:
    def test_ledger_is_required(self) -> None:
        with pytest.raises(ConfigurationError):
            EscrowStateFacade(None)


class TestCurrentState:
    @pytest.mark.asyncio
    async def test_executable_exactly_at_timeout(self, quiet_ledger) -> None:
        state = await EscrowStateFacade(quiet_ledger, clock=_Clock(1600)).get_current_state("42")

        assert isinstance(state, TransactionState)
        assert state.status == TransactionStatus.NO_DISPUTE
        assert state.executable is True
        assert state.dispute is None
        assert state.as_of == 1600

    @pytest.mark.asyncio
    async def test_not_executable_one_second_early(self, quiet_ledger) -> None:
        state = await EscrowStateFacade(quiet_ledger, clock=_Clock(1599)).get_current_state("42")
        assert state.executable is False

    @pytest.mark.asyncio
    async def test_now_is_sampled_once(self, seeded_ledger) -> None:
        clock = _Clock(5000)
        await EscrowStateFacade(seeded_ledger, clock=clock).get_current_state("1")
        assert clock.samples == 1

    @pytest.mark.asyncio
    async def test_disputed_transaction(self, seeded_ledger) -> None:
        state = await EscrowStateFacade(seeded_ledger, clock=_Clock(5000)).get_current_state("1")

        assert state.status == TransactionStatus.DISPUTE_CREATED
        assert state.dispute.dispute_id == 7
        assert state.dispute.status == DisputeStatus.APPEALABLE
        assert state.dispute.ruling == Ruling.RECEIVER_WINS
        assert state.executable is False
        assert state.allowed_actions == ["rule"]

    @pytest.mark.asyncio
    async def test_sender_may_time_out_receiver(self, ledger) -> None:
        ledger.add_transaction("3", status=2, last_interaction=1000)
        ledger.fee_timeout_seconds = 3600

        facade = EscrowStateFacade(ledger, clock=_Clock(4600))
        state = await facade.get_current_state("3")

        assert state.status == TransactionStatus.WAITING_RECEIVER
        assert state.timeout_eligibility.sender_can_time_out is True
        assert state.timeout_eligibility.receiver_can_time_out is False

    @pytest.mark.asyncio
    async def test_fee_timeout_failure_degrades(self, ledger) -> None:
        ledger.add_transaction("3", status=2, last_interaction=1000)
        ledger.fail["fee_timeout"] = ConnectionError("down")

        state = await EscrowStateFacade(ledger, clock=_Clock(10**9)).get_current_state("3")

        assert state.timeout_eligibility.sender_can_time_out is False
        assert state.timeout_eligibility.receiver_can_time_out is False

    @pytest.mark.asyncio
    async def test_dispute_probe_failure_is_not_fatal(self, seeded_ledger) -> None:
        seeded_ledger.arbitrator = {}
        state = await EscrowStateFacade(seeded_ledger, clock=_Clock(5000)).get_current_state("1")
        assert state.dispute.status == DisputeStatus.WAITING
        assert state.dispute.ruling is None

    @pytest.mark.asyncio
    async def test_snapshot_failure_raises(self, ledger) -> None:
        with pytest.raises(LedgerReadError) as exc_info:
            await EscrowStateFacade(ledger, clock=_Clock(0)).get_current_state("9")
        assert exc_info.value.transaction_id == "9"

    @pytest.mark.asyncio
    async def test_arbitrator_address_failure_raises(self, seeded_ledger) -> None:
        seeded_ledger.fail["arbitrator_address"] = ConnectionError("down")
        with pytest.raises(LedgerReadError, match="arbitrator_address"):
            await EscrowStateFacade(seeded_ledger, clock=_Clock(0)).get_current_state("1")

    @pytest.mark.asyncio
    async def test_numeric_id_is_accepted(self, quiet_ledger) -> None:
        state = await EscrowStateFacade(quiet_ledger, clock=_Clock(0)).get_current_state(42)
        assert state.transaction_id == "42"

    @pytest.mark.asyncio
    async def test_to_dict(self, seeded_ledger) -> None:
        state = await EscrowStateFacade(seeded_ledger, clock=_Clock(5000)).get_current_state("1")
        data = state.to_dict()
        assert data["status"] == "DisputeCreated"
        assert data["dispute"]["dispute_id"] == 7


class TestHistory:
    @pytest.mark.asyncio
    async def test_delegates_to_aggregator(self, seeded_ledger) -> None:
        history = await EscrowStateFacade(seeded_ledger).get_transaction_history("1")
        assert [event.kind for event in history] == [
            EventKind.META_EVIDENCE,
            EventKind.PAYMENT,
            EventKind.HAS_TO_PAY_FEE,
            EventKind.DISPUTE,
            EventKind.EVIDENCE,
            EventKind.RULING,
        ]

    @pytest.mark.asyncio
    async def test_never_raises(self, ledger) -> None:
        ledger.fail["query_events"] = ConnectionError("down")
        assert await EscrowStateFacade(ledger).get_transaction_history("1") == []


class TestAddresses:
    @pytest.mark.asyncio
    async def test_snapshots_for_address(self, seeded_ledger) -> None:
        seeded_ledger.addresses["0xabc"] = ["0", "1"]
        snapshots = await EscrowStateFacade(seeded_ledger).get_transactions_for_address("0xabc")
        assert [snapshot.transaction_id for snapshot in snapshots] == ["0", "1"]

    @pytest.mark.asyncio
    async def test_unknown_address(self, seeded_ledger) -> None:
        assert await EscrowStateFacade(seeded_ledger).get_transactions_for_address("0xdef") == []


class TestMetaEvidence:
    @pytest.mark.asyncio
    async def test_requires_object_store(self, seeded_ledger) -> None:
        with pytest.raises(ConfigurationError):
            await EscrowStateFacade(seeded_ledger).get_meta_evidence("1")

    @pytest.mark.asyncio
    async def test_loads_latest_document(self, seeded_ledger, object_store) -> None:
        object_store.put_json("/ipfs/meta-1.json", {
            "title": "Website redesign",
            "description": "Escrow for a redesign of the landing page.",
            "question": "Which party abided by the terms of the contract?",
            "rulingOptions": {"type": "single-select", "titles": ["Refund Sender", "Pay Receiver"]},
        })

        facade = EscrowStateFacade(seeded_ledger, object_store=object_store)
        meta = await facade.get_meta_evidence("1")

        assert meta.title == "Website redesign"
        assert meta.uri == "/ipfs/meta-1.json"
        assert meta.ruling_titles == ["Refund Sender", "Pay Receiver"]

    @pytest.mark.asyncio
    async def test_no_meta_evidence_event(self, ledger, object_store) -> None:
        ledger.add_transaction("5")
        facade = EscrowStateFacade(ledger, object_store=object_store)
        assert await facade.get_meta_evidence("5") is None

    @pytest.mark.asyncio
    async def test_missing_document(self, seeded_ledger, object_store) -> None:
        facade = EscrowStateFacade(seeded_ledger, object_store=object_store)
        with pytest.raises(MetaEvidenceError):
            await facade.get_meta_evidence("1")


class TestSubscriptionsHub:
    def test_created_once(self, seeded_ledger) -> None:
        facade = EscrowStateFacade(seeded_ledger)
        assert facade.subscriptions() is facade.subscriptions()
