"""Execution and fee-timeout eligibility.

Pure functions: the caller supplies the snapshot and "now" (whole seconds
since epoch). Boundaries are inclusive, so the exact instant a timeout
elapses is already eligible.
"""

from __future__ import annotations

from escrow_reconciler.domain.enums import TransactionStatus
from escrow_reconciler.domain.models import TimeoutEligibility, TransactionSnapshot


def can_execute(snapshot: TransactionSnapshot, now: int) -> bool:
    """Return True if the receiver may execute the transaction after its payment timeout."""
    return (
        snapshot.status == TransactionStatus.NO_DISPUTE
        and now - snapshot.last_interaction >= snapshot.timeout_payment
    )


def can_time_out(snapshot: TransactionSnapshot, now: int, fee_timeout: int) -> TimeoutEligibility:
    """Return which party may time out the other for not paying the arbitration fee.

    The sender may time out a receiver who has not paid (WaitingReceiver) and
    vice versa. At most one flag is ever set.
    """
    elapsed = now - snapshot.last_interaction >= fee_timeout
    status = snapshot.status
    return TimeoutEligibility(
        sender_can_time_out=status == TransactionStatus.WAITING_RECEIVER and elapsed,
        receiver_can_time_out=status == TransactionStatus.WAITING_SENDER and elapsed,
    )
