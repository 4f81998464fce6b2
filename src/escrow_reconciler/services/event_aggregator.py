"""Event Aggregator: one ordered history out of six event streams.

Aggregation flow:
    1. Pick the block window: the ledger head (or from_block + the fallback
       span if the head is unavailable), clamped to max_block_span blocks.
    2. Resolve the dispute id of the transaction once, since Dispute and
       Ruling events are indexed by it rather than by the transaction id.
    3. Query the six event kinds concurrently. Each kind is isolated: a
       failed query degrades that kind to an empty list and is logged.
    4. Correlate unpinned Ruling events back to their transaction.
    5. Merge and sort by block.

The whole operation is best-effort. It never raises; the worst case is an
empty history. Callers must not read an incomplete history as proof that an
event did not happen.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import TYPE_CHECKING

from escrow_reconciler.config import get_settings
from escrow_reconciler.domain.enums import EventKind
from escrow_reconciler.domain.events import BaseEvent, RulingEvent, merge_history
from escrow_reconciler.domain.exceptions import LedgerReadError
from escrow_reconciler.domain.models import UNKNOWN_TRANSACTION
from escrow_reconciler.ledger.decoding import EventDecoder
from escrow_reconciler.logging_config import get_logger, reconciliation_context
from escrow_reconciler.services.dispute_index import DisputeIndex
from escrow_reconciler.services.dispute_resolver import DisputeResolver
from escrow_reconciler.services.fanout import gather_isolated
from escrow_reconciler.services.transaction_reader import TransactionReader

if TYPE_CHECKING:
    from escrow_reconciler.domain.collaborators import LedgerClient

logger = get_logger(__name__)


@dataclass(frozen=True)
class BlockWindow:
    """Inclusive block range scanned by one aggregation."""

    from_block: int
    to_block: int

    @property
    def is_empty(self) -> bool:
        return self.to_block < self.from_block


@dataclass(frozen=True)
class _DisputeKey:
    dispute_id: int | None = None
    error: Exception | None = None


@dataclass
class _Session:
    transaction_id: str | None
    window: BlockWindow
    decoder: EventDecoder
    dispute_key: _DisputeKey
    index: DisputeIndex


class EventAggregator:
    """Assembles the event history of a transaction from the ledger."""

    def __init__(
        self,
        ledger: LedgerClient,
        resolver: DisputeResolver | None = None,
        reader: TransactionReader | None = None,
        max_block_span: int | None = None,
        head_fallback_span: int | None = None,
    ) -> None:
        """Initialize with optional overrides (defaults come from config)."""
        self._ledger = ledger
        self._reader = reader or TransactionReader(ledger)
        self._resolver = resolver or DisputeResolver(ledger, reader=self._reader)
        self._max_block_span = max_block_span
        self._head_fallback_span = head_fallback_span

    def _spans(self) -> tuple[int, int]:
        settings = get_settings()
        return (
            self._max_block_span if self._max_block_span is not None else settings.max_block_span,
            self._head_fallback_span if self._head_fallback_span is not None else settings.head_fallback_span,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_history(
        self,
        transaction_id: str | None,
        from_block: int = 0,
    ) -> list[BaseEvent]:
        """Return the events of a transaction, ordered by block.

        Best-effort: sources that fail are logged and left out, and the call
        itself never raises. At most max_block_span blocks are scanned per
        call; resume a longer history by calling again with a later
        from_block.

        Args:
            transaction_id: The escrow transaction id, or None for the events
                of every transaction in the window.
            from_block: First block to scan.

        Returns:
            Events sorted by (block_number, log_index). Ruling events whose
            transaction cannot be determined carry UNKNOWN_TRANSACTION.
        """
        tid = str(transaction_id) if transaction_id is not None else None
        with reconciliation_context(transaction_id=tid, from_block=from_block):
            try:
                return await self._collect(tid, from_block)
            except Exception:
                logger.exception("aggregator.history_failed")
                return []

    async def block_window(self, from_block: int) -> BlockWindow:
        """Compute the window scanned by a call starting at ``from_block``."""
        max_span, fallback_span = self._spans()
        try:
            head = int(await self._ledger.head_block())
        except Exception as exc:
            head = from_block + fallback_span
            logger.warning(
                "aggregator.head_block_unavailable",
                from_block=from_block,
                assumed_head=head,
                error=str(exc),
            )
        return BlockWindow(from_block=from_block, to_block=min(from_block + max_span, head))

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    async def _collect(self, transaction_id: str | None, from_block: int) -> list[BaseEvent]:
        window = await self.block_window(from_block)
        if window.is_empty:
            logger.debug("aggregator.empty_window", from_block=window.from_block, to_block=window.to_block)
            return []

        session = _Session(
            transaction_id=transaction_id,
            window=window,
            decoder=EventDecoder(self._ledger),
            dispute_key=await self._dispute_key(transaction_id),
            index=DisputeIndex(),
        )

        outcome = await gather_isolated({
            kind.value: self._fetch_kind(kind, session) for kind in EventKind
        })
        for failure in outcome.failures:
            logger.warning(
                "aggregator.kind_failed",
                kind=failure.source,
                transaction_id=transaction_id,
                from_block=window.from_block,
                to_block=window.to_block,
                error=str(failure.error),
                error_type=failure.error_type,
            )

        by_kind: dict[EventKind, list[BaseEvent]] = {
            kind: outcome.successes.get(kind.value, []) for kind in EventKind
        }
        session.index.observe(by_kind[EventKind.DISPUTE])
        if transaction_id is None:
            by_kind[EventKind.RULING] = await self._correlate_rulings(by_kind[EventKind.RULING], session.index)

        history = merge_history(*by_kind.values())
        logger.info(
            "aggregator.history_assembled",
            transaction_id=transaction_id,
            from_block=window.from_block,
            to_block=window.to_block,
            events=len(history),
            degraded=outcome.degraded,
        )
        return history

    async def _dispute_key(self, transaction_id: str | None) -> _DisputeKey:
        if transaction_id is None:
            return _DisputeKey()
        try:
            snapshot = await self._reader.read_snapshot(transaction_id)
        except LedgerReadError as exc:
            logger.warning(
                "aggregator.dispute_key_unavailable",
                transaction_id=transaction_id,
                error=exc.message,
            )
            return _DisputeKey(error=exc)
        return _DisputeKey(dispute_id=snapshot.dispute_id)

    async def _fetch_kind(self, kind: EventKind, session: _Session) -> list[BaseEvent]:
        transaction_id = session.transaction_id
        filter_key: str | int | None = transaction_id
        hint: str | None = None

        if kind == EventKind.DISPUTE and transaction_id is not None:
            key = session.dispute_key
            if key.dispute_id == 0:
                return []
            # Without the dispute id, scan unfiltered and match on meta-evidence id
            filter_key = key.dispute_id
        elif kind == EventKind.EVIDENCE and transaction_id == "0":
            # Evidence group 0 cannot be used as an indexed filter value
            filter_key = None
        elif kind == EventKind.RULING and transaction_id is not None:
            key = session.dispute_key
            if key.error is not None:
                raise key.error
            if key.dispute_id == 0:
                return []
            filter_key = key.dispute_id
            hint = transaction_id

        raws = await self._ledger.query_events(
            kind,
            filter_key,
            session.window.from_block,
            session.window.to_block,
        )
        events = await session.decoder.decode_many(kind, list(raws), transaction_id=hint)

        if transaction_id is not None:
            events = [event for event in events if event.transaction_id == transaction_id]
        logger.debug(
            "aggregator.kind_fetched",
            kind=kind.value,
            transaction_id=transaction_id,
            count=len(events),
        )
        return events

    async def _correlate_rulings(
        self,
        rulings: list[BaseEvent],
        index: DisputeIndex,
    ) -> list[BaseEvent]:
        resolved: dict[int, str] = {}
        correlated: list[BaseEvent] = []
        for event in rulings:
            if not isinstance(event, RulingEvent) or event.transaction_id != UNKNOWN_TRANSACTION:
                correlated.append(event)
                continue
            if event.dispute_id not in resolved:
                resolved[event.dispute_id] = await self._resolver.find_transaction_for_dispute(
                    event.dispute_id, index
                )
            correlated.append(dataclasses.replace(event, transaction_id=resolved[event.dispute_id]))
        return correlated
