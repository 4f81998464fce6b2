"""Dispute id -> transaction id index.

The escrow contract keeps no reverse mapping from arbitrator dispute ids to
transactions. This index is filled as Dispute events are observed, so that
Ruling events seen in the same session (or subscription) can be correlated
without scanning transaction records.
"""

from __future__ import annotations

from collections.abc import Iterable

from escrow_reconciler.domain.events import BaseEvent, DisputeEvent
from escrow_reconciler.domain.models import UNKNOWN_TRANSACTION


class DisputeIndex:
    """Incrementally built mapping of dispute ids to transaction ids."""

    def __init__(self) -> None:
        self._by_dispute: dict[int, str] = {}

    def __len__(self) -> int:
        return len(self._by_dispute)

    def __contains__(self, dispute_id: object) -> bool:
        return dispute_id in self._by_dispute

    def record(self, dispute_id: int, transaction_id: str) -> None:
        if dispute_id == 0 or transaction_id == UNKNOWN_TRANSACTION:
            return
        self._by_dispute[dispute_id] = transaction_id

    def observe(self, events: Iterable[BaseEvent]) -> None:
        """Index every Dispute event in ``events``; other kinds are ignored."""
        for event in events:
            if isinstance(event, DisputeEvent):
                self.record(event.dispute_id, event.transaction_id)

    def lookup(self, dispute_id: int) -> str | None:
        return self._by_dispute.get(dispute_id)
