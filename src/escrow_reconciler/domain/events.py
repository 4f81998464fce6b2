"""Domain events: a closed tagged union, one frozen dataclass per event kind.

Raw ledger records are decoded into these at the ledger boundary
(ledger/decoding.py). Downstream code dispatches on the class-level ``kind``
and never sees loosely-typed event arguments.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from escrow_reconciler.domain.enums import EventKind, Party, Ruling


@dataclass(frozen=True, kw_only=True)
class BaseEvent:
    """Fields shared by every event kind.

    Attributes:
        transaction_id: Escrow transaction the event belongs to, or
            UNKNOWN_TRANSACTION when it could not be correlated.
        block_number: Block the event was emitted in. None when the ledger
            returned no usable block number; such events never reach a
            merged history.
        transaction_hash: Hash of the ledger transaction that emitted it.
        block_hash: Hash of the containing block, empty when not reported.
        log_index: Position of the event within its block.
        timestamp: Block timestamp, 0 when it could not be recovered.
    """

    kind: ClassVar[EventKind]

    transaction_id: str
    block_number: int | None
    transaction_hash: str = ""
    block_hash: str = ""
    log_index: int = 0
    timestamp: int = 0

    @property
    def is_placeable(self) -> bool:
        """True if the event can be positioned in a block-ordered history."""
        return isinstance(self.block_number, int) and self.block_number >= 0


@dataclass(frozen=True, kw_only=True)
class MetaEvidenceEvent(BaseEvent):
    kind: ClassVar[EventKind] = EventKind.META_EVIDENCE

    meta_evidence_id: str
    evidence: str


@dataclass(frozen=True, kw_only=True)
class PaymentEvent(BaseEvent):
    kind: ClassVar[EventKind] = EventKind.PAYMENT

    amount: int
    party: str


@dataclass(frozen=True, kw_only=True)
class HasToPayFeeEvent(BaseEvent):
    kind: ClassVar[EventKind] = EventKind.HAS_TO_PAY_FEE

    party: Party


@dataclass(frozen=True, kw_only=True)
class DisputeEvent(BaseEvent):
    kind: ClassVar[EventKind] = EventKind.DISPUTE

    dispute_id: int
    arbitrator: str
    meta_evidence_id: str
    evidence_group_id: str


@dataclass(frozen=True, kw_only=True)
class EvidenceEvent(BaseEvent):
    kind: ClassVar[EventKind] = EventKind.EVIDENCE

    arbitrator: str
    party: str
    evidence: str
    evidence_group_id: str


@dataclass(frozen=True, kw_only=True)
class RulingEvent(BaseEvent):
    kind: ClassVar[EventKind] = EventKind.RULING

    dispute_id: int
    ruling: Ruling
    arbitrator: str


DomainEvent = (
    MetaEvidenceEvent
    | PaymentEvent
    | HasToPayFeeEvent
    | DisputeEvent
    | EvidenceEvent
    | RulingEvent
)

EVENT_TYPES: dict[EventKind, type[BaseEvent]] = {
    EventKind.META_EVIDENCE: MetaEvidenceEvent,
    EventKind.PAYMENT: PaymentEvent,
    EventKind.HAS_TO_PAY_FEE: HasToPayFeeEvent,
    EventKind.DISPUTE: DisputeEvent,
    EventKind.EVIDENCE: EvidenceEvent,
    EventKind.RULING: RulingEvent,
}


def merge_history(*event_lists: list[BaseEvent]) -> list[BaseEvent]:
    """Concatenate event lists and order them by block.

    Events without a valid block number are dropped. The sort is stable on
    (block_number, log_index), so events sharing both keep their input order.
    """
    merged = [event for events in event_lists for event in events if event.is_placeable]
    merged.sort(key=lambda event: (event.block_number, event.log_index))
    return merged
