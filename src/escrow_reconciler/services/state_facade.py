"""Escrow State Facade: the public entry point of the reconciler.

Answers two questions about an escrow transaction:
    - What happened to it?    get_transaction_history (best-effort)
    - What is its state now?  get_current_state

Both are pure queries; nothing is written to the ledger.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from escrow_reconciler.domain.events import MetaEvidenceEvent
from escrow_reconciler.domain.exceptions import ConfigurationError
from escrow_reconciler.domain.lifecycle import allowed_actions
from escrow_reconciler.domain.models import TimeoutEligibility, TransactionState
from escrow_reconciler.domain.status_mapper import map_status
from escrow_reconciler.domain.timeout_policy import can_execute, can_time_out
from escrow_reconciler.logging_config import get_logger, reconciliation_context
from escrow_reconciler.services.dispute_resolver import DisputeResolver
from escrow_reconciler.services.event_aggregator import EventAggregator
from escrow_reconciler.services.fanout import gather_isolated
from escrow_reconciler.services.meta_evidence import MetaEvidence, MetaEvidenceReader
from escrow_reconciler.services.subscriptions import EventSubscriptions
from escrow_reconciler.services.transaction_reader import TransactionReader

if TYPE_CHECKING:
    from escrow_reconciler.domain.collaborators import LedgerClient, ObjectStore
    from escrow_reconciler.domain.events import BaseEvent
    from escrow_reconciler.domain.models import TransactionSnapshot

logger = get_logger(__name__)


def _unix_now() -> int:
    return int(datetime.now(UTC).timestamp())


class EscrowStateFacade:
    """Composes the reader, aggregator and resolver behind one interface."""

    def __init__(
        self,
        ledger: LedgerClient,
        object_store: ObjectStore | None = None,
        clock: Callable[[], int] | None = None,
        reader: TransactionReader | None = None,
        resolver: DisputeResolver | None = None,
        aggregator: EventAggregator | None = None,
    ) -> None:
        """Wire the reconciler around a ledger client.

        Args:
            ledger: The ledger client collaborator. Required.
            object_store: Object store for meta-evidence documents. Optional;
                only get_meta_evidence needs it.
            clock: Returns the current unix time in whole seconds.
            reader, resolver, aggregator: Pre-built components, mainly for tests.

        Raises:
            ConfigurationError: If no ledger client is given.
        """
        if ledger is None:
            raise ConfigurationError("A ledger client is required")
        self._ledger = ledger
        self._object_store = object_store
        self._clock = clock or _unix_now
        self._reader = reader or TransactionReader(ledger)
        self._resolver = resolver or DisputeResolver(ledger, reader=self._reader)
        self._aggregator = aggregator or EventAggregator(
            ledger, resolver=self._resolver, reader=self._reader
        )
        self._subscriptions: EventSubscriptions | None = None

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def get_transaction_history(
        self,
        transaction_id: str,
        from_block: int = 0,
    ) -> list[BaseEvent]:
        """Return the block-ordered event history of a transaction.

        Best-effort: event sources that fail are left out and logged, and
        the call never raises. At most one scan window is covered per call;
        pass a later from_block to resume.
        """
        return await self._aggregator.get_history(str(transaction_id), from_block=from_block)

    # ------------------------------------------------------------------
    # Current state
    # ------------------------------------------------------------------

    async def get_current_state(self, transaction_id: str) -> TransactionState:
        """Resolve status, dispute and eligibility of a transaction at one instant.

        "now" is sampled once, before any ledger read, and used for every
        eligibility check of this call. Dispute enrichment and the fee
        timeout degrade independently; a fee timeout that cannot be read
        leaves both timeout flags False.

        Raises:
            LedgerReadError: If the snapshot, arbitrator address or
                arbitrator extra data cannot be read.
        """
        transaction_id = str(transaction_id)
        now = self._clock()
        with reconciliation_context(transaction_id=transaction_id, as_of=now):
            return await self._resolve_state(transaction_id, now)

    async def _resolve_state(self, transaction_id: str, now: int) -> TransactionState:
        snapshot = await self._reader.read_snapshot(transaction_id)

        outcome = await gather_isolated({
            "dispute": self._resolver.resolve(transaction_id, snapshot=snapshot),
            "fee_timeout": self._resolver.get_fee_timeout(),
        })
        for failure in outcome.failures:
            if failure.source == "dispute":
                raise failure.error
            logger.warning(
                "facade.fee_timeout_unavailable",
                transaction_id=transaction_id,
                error=str(failure.error),
            )

        status = map_status(snapshot.raw_status)
        fee_timeout = outcome.successes.get("fee_timeout")
        eligibility = (
            can_time_out(snapshot, now, fee_timeout)
            if fee_timeout is not None
            else TimeoutEligibility()
        )

        state = TransactionState(
            transaction_id=transaction_id,
            status=status,
            dispute=outcome.successes.get("dispute"),
            executable=can_execute(snapshot, now),
            timeout_eligibility=eligibility,
            as_of=now,
            snapshot=snapshot,
            allowed_actions=allowed_actions(status),
        )
        logger.info(
            "facade.state_resolved",
            transaction_id=transaction_id,
            status=status.value,
            has_dispute=state.dispute is not None,
            executable=state.executable,
        )
        return state

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    async def get_transactions_for_address(self, address: str) -> list[TransactionSnapshot]:
        """Return snapshots of the transactions where ``address`` is a party."""
        return await self._reader.snapshots_for_address(address)

    async def get_meta_evidence(
        self,
        transaction_id: str,
        from_block: int = 0,
    ) -> MetaEvidence | None:
        """Load the latest meta-evidence document of a transaction.

        Returns:
            The validated document, or None if no MetaEvidence event was
            found in the scanned window.

        Raises:
            ConfigurationError: If the facade has no object store.
            MetaEvidenceError: If the document cannot be fetched or is invalid.
        """
        if self._object_store is None:
            raise ConfigurationError("An object store is required to load meta-evidence")

        history = await self.get_transaction_history(transaction_id, from_block=from_block)
        meta_events = [event for event in history if isinstance(event, MetaEvidenceEvent)]
        if not meta_events:
            logger.info("facade.meta_evidence_missing", transaction_id=str(transaction_id))
            return None
        return await MetaEvidenceReader(self._object_store).load(meta_events[-1].evidence)

    def subscriptions(self) -> EventSubscriptions:
        """Return the live subscription hub, created on first use."""
        if self._subscriptions is None:
            self._subscriptions = EventSubscriptions(self._ledger, resolver=self._resolver)
        return self._subscriptions
