"""Point-in-time domain values built from ledger reads.

Nothing here is persisted. Every read produces fresh frozen instances.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from escrow_reconciler.domain.enums import DisputeStatus, Ruling, TransactionStatus
from escrow_reconciler.domain.status_mapper import map_status

UNKNOWN_TRANSACTION = "unknown"
"""Transaction id used when a dispute cannot be correlated to its transaction."""


@dataclass(frozen=True)
class TransactionSnapshot:
    """One read of an escrow transaction record.

    Attributes:
        transaction_id: Contract-assigned id, as a decimal string.
        sender: Address of the paying party.
        receiver: Address of the receiving party.
        amount: Amount still held in escrow, in the smallest unit.
        raw_status: Numeric status code as stored by the contract.
        timeout_payment: Seconds after the last interaction before the
            receiver may execute the transaction.
        last_interaction: Unix time of the last state-changing call.
        created_at: Unix time of creation, 0 when unknown.
        dispute_id: Arbitrator dispute id, 0 when there is no dispute.
        sender_fee: Arbitration fee paid so far by the sender.
        receiver_fee: Arbitration fee paid so far by the receiver.
    """

    transaction_id: str
    sender: str
    receiver: str
    amount: int
    raw_status: int
    timeout_payment: int
    last_interaction: int
    created_at: int = 0
    dispute_id: int = 0
    sender_fee: int = 0
    receiver_fee: int = 0

    @property
    def status(self) -> TransactionStatus:
        return map_status(self.raw_status)

    @property
    def has_dispute(self) -> bool:
        return self.dispute_id != 0


@dataclass(frozen=True)
class DisputeRecord:
    """A dispute as seen by the escrow contract and its arbitrator.

    status and ruling come from best-effort arbitrator probes and keep their
    defaults (Waiting, None) when a probe fails. The appeal period bounds are
    None on arbitrators that do not support appeals.
    """

    dispute_id: int
    transaction_id: str
    arbitrator: str
    arbitrator_extra_data: bytes
    status: DisputeStatus = DisputeStatus.WAITING
    ruling: Ruling | None = None
    appeal_period_start: int | None = None
    appeal_period_end: int | None = None

    @property
    def evidence_group_id(self) -> str:
        """Evidence group id, equal to the transaction id in this contract family."""
        return self.transaction_id

    @property
    def has_appeal_period(self) -> bool:
        return self.appeal_period_start is not None and self.appeal_period_end is not None


@dataclass(frozen=True)
class TimeoutEligibility:
    """Which party may currently time out the other for unpaid arbitration fees."""

    sender_can_time_out: bool = False
    receiver_can_time_out: bool = False


@dataclass(frozen=True)
class TransactionState:
    """Resolved current state of a transaction, computed at a single instant."""

    transaction_id: str
    status: TransactionStatus
    dispute: DisputeRecord | None
    executable: bool
    timeout_eligibility: TimeoutEligibility
    as_of: int
    snapshot: TransactionSnapshot
    allowed_actions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Serialize for JSON responses and structured logs."""
        dispute = None
        if self.dispute is not None:
            dispute = {
                "dispute_id": self.dispute.dispute_id,
                "status": self.dispute.status.value,
                "ruling": self.dispute.ruling.name if self.dispute.ruling is not None else None,
                "arbitrator": self.dispute.arbitrator,
                "evidence_group_id": self.dispute.evidence_group_id,
                "appeal_period_start": self.dispute.appeal_period_start,
                "appeal_period_end": self.dispute.appeal_period_end,
            }
        return {
            "transaction_id": self.transaction_id,
            "status": self.status.value,
            "dispute": dispute,
            "executable": self.executable,
            "sender_can_time_out": self.timeout_eligibility.sender_can_time_out,
            "receiver_can_time_out": self.timeout_eligibility.receiver_can_time_out,
            "as_of": self.as_of,
            "allowed_actions": list(self.allowed_actions),
        }
