"""Escrow Transaction Lifecycle Guard.

Uses python-statemachine to describe which contract actions are legal from a
given TransactionStatus. The reconciler never fires these transitions against
the ledger; it uses the machine to report ``allowed_actions`` alongside a
resolved state and to check observed status changes.

Transition table:
    NoDispute       -> WaitingReceiver  (sender_pays_fee)
    NoDispute       -> WaitingSender    (receiver_pays_fee)
    NoDispute       -> Resolved         (execute_transaction)
    NoDispute       -> Resolved         (settle)
    WaitingSender   -> DisputeCreated   (sender_pays_fee)
    WaitingReceiver -> DisputeCreated   (receiver_pays_fee)
    WaitingSender   -> Resolved         (time_out_by_receiver)
    WaitingReceiver -> Resolved         (time_out_by_sender)
    DisputeCreated  -> Resolved         (rule)
"""

from __future__ import annotations

from statemachine import State, StateMachine

from escrow_reconciler.domain.enums import TransactionStatus

LIFECYCLE_ACTIONS = frozenset({
    "sender_pays_fee",
    "receiver_pays_fee",
    "execute_transaction",
    "settle",
    "time_out_by_sender",
    "time_out_by_receiver",
    "rule",
})


class TransactionLifecycle(StateMachine):
    """State machine over escrow transaction statuses.

    Usage:
        sm = TransactionLifecycle(current_status="NoDispute")
        sm.sender_pays_fee()   # transitions to WaitingReceiver
        sm.status              # "WaitingReceiver"
    """

    # --- States ---
    no_dispute = State("NoDispute", value=TransactionStatus.NO_DISPUTE.value, initial=True)
    waiting_sender = State("WaitingSender", value=TransactionStatus.WAITING_SENDER.value)
    waiting_receiver = State("WaitingReceiver", value=TransactionStatus.WAITING_RECEIVER.value)
    dispute_created = State("DisputeCreated", value=TransactionStatus.DISPUTE_CREATED.value)
    resolved = State("Resolved", value=TransactionStatus.RESOLVED.value, final=True)

    # --- Events / Transitions ---

    # Arbitration fees
    sender_pays_fee = no_dispute.to(waiting_receiver) | waiting_sender.to(dispute_created)
    receiver_pays_fee = no_dispute.to(waiting_sender) | waiting_receiver.to(dispute_created)

    # Settlement without dispute
    execute_transaction = no_dispute.to(resolved)
    settle = no_dispute.to(resolved)

    # Fee timeouts
    time_out_by_sender = waiting_receiver.to(resolved)
    time_out_by_receiver = waiting_sender.to(resolved)

    # Arbitration
    rule = dispute_created.to(resolved)

    def __init__(self, current_status: str = TransactionStatus.NO_DISPUTE.value) -> None:
        valid_values = {s.value for s in self.states}
        if current_status not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(
                f"Unknown status '{current_status}'. Valid states: {valid}"
            )
        super().__init__(start_value=str(current_status))

    @property
    def status(self) -> TransactionStatus:
        return TransactionStatus(self.current_state.value)

    def get_allowed_actions(self) -> list[str]:
        """Return the contract actions that are legal from the current status."""
        return [event.id for event in self.allowed_events]


def allowed_actions(status: TransactionStatus) -> list[str]:
    """Return the legal actions from ``status``."""
    return TransactionLifecycle(current_status=status.value).get_allowed_actions()


def validate_transition(current_status: str, action: str) -> TransactionStatus:
    """Fire ``action`` from ``current_status`` and return the resulting status.

    Raises:
        TransitionNotAllowed: If the action is illegal from the current status.
        ValueError: If the status or action name is unknown.
    """
    sm = TransactionLifecycle(current_status=current_status)

    action_method = getattr(sm, action, None)
    if action_method is None or action not in LIFECYCLE_ACTIONS:
        raise ValueError(
            f"Unknown action '{action}'. "
            f"Allowed actions from {current_status}: {sm.get_allowed_actions()}"
        )

    action_method()
    return sm.status


def is_legal_change(previous: TransactionStatus, current: TransactionStatus) -> bool:
    """Return True if ``current`` is reachable from ``previous`` in one action, or unchanged."""
    if previous == current:
        return True
    sm = TransactionLifecycle(current_status=previous.value)
    return any(
        transition.target.value == current.value
        for transition in sm.current_state.transitions
    )
