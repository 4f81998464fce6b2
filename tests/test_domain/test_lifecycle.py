"""Tests for the TransactionLifecycle guard.

These tests verify that:
    1. The dispute path and the timeout exits are allowed.
    2. Illegal transitions are blocked.
    3. Allowed actions are reported per status.
"""

from __future__ import annotations

import pytest
from statemachine.exceptions import TransitionNotAllowed

from escrow_reconciler.domain.enums import TransactionStatus
from escrow_reconciler.domain.lifecycle import (
    TransactionLifecycle,
    allowed_actions,
    is_legal_change,
    validate_transition,
)


class TestDisputePath:
    def test_full_dispute_lifecycle(self) -> None:
        sm = TransactionLifecycle("NoDispute")
        sm.receiver_pays_fee()
        assert sm.status == TransactionStatus.WAITING_SENDER

        sm.sender_pays_fee()
        assert sm.status == TransactionStatus.DISPUTE_CREATED

        sm.rule()
        assert sm.status == TransactionStatus.RESOLVED

    def test_sender_pays_first(self) -> None:
        sm = TransactionLifecycle("NoDispute")
        sm.sender_pays_fee()
        assert sm.status == TransactionStatus.WAITING_RECEIVER


class TestDirectResolution:
    def test_execute(self) -> None:
        assert validate_transition("NoDispute", "execute_transaction") == TransactionStatus.RESOLVED

    def test_timeouts(self) -> None:
        assert validate_transition("WaitingReceiver", "time_out_by_sender") == TransactionStatus.RESOLVED
        assert validate_transition("WaitingSender", "time_out_by_receiver") == TransactionStatus.RESOLVED


class TestIllegalTransitions:
    def test_rule_without_dispute(self) -> None:
        sm = TransactionLifecycle("NoDispute")
        with pytest.raises(TransitionNotAllowed):
            sm.rule()

    def test_wrong_party_timeout(self) -> None:
        with pytest.raises(TransitionNotAllowed):
            validate_transition("WaitingSender", "time_out_by_sender")

    def test_resolved_is_final(self) -> None:
        assert allowed_actions(TransactionStatus.RESOLVED) == []

    def test_unknown_action(self) -> None:
        with pytest.raises(ValueError, match="Unknown action"):
            validate_transition("NoDispute", "refund_everyone")

    def test_unknown_status(self) -> None:
        with pytest.raises(ValueError, match="Unknown status"):
            TransactionLifecycle("Cancelled")


class TestAllowedActions:
    def test_no_dispute(self) -> None:
        actions = allowed_actions(TransactionStatus.NO_DISPUTE)
        assert set(actions) == {"sender_pays_fee", "receiver_pays_fee", "execute_transaction", "settle"}

    def test_dispute_created(self) -> None:
        assert allowed_actions(TransactionStatus.DISPUTE_CREATED) == ["rule"]


class TestIsLegalChange:
    def test_unchanged(self) -> None:
        assert is_legal_change(TransactionStatus.DISPUTE_CREATED, TransactionStatus.DISPUTE_CREATED)

    def test_one_step(self) -> None:
        assert is_legal_change(TransactionStatus.NO_DISPUTE, TransactionStatus.WAITING_SENDER)

    def test_skipping_steps(self) -> None:
        assert not is_legal_change(TransactionStatus.NO_DISPUTE, TransactionStatus.DISPUTE_CREATED)

    def test_backwards(self) -> None:
        assert not is_legal_change(TransactionStatus.RESOLVED, TransactionStatus.NO_DISPUTE)
