"""Dispute Resolver: dispute state for a transaction, and the reverse lookup.

Resolution flow:
    1. Read the transaction snapshot; dispute id 0 means no dispute.
    2. Read the arbitrator address and extra data (mandatory).
    3. Probe the arbitrator for status, current ruling and appeal period.
       Each probe is isolated and best-effort: a failed probe leaves its
       field at the default, never fails the call.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from escrow_reconciler.config import get_settings
from escrow_reconciler.domain.enums import ArbitratorMethod
from escrow_reconciler.domain.exceptions import ConfigurationError, LedgerReadError
from escrow_reconciler.domain.models import UNKNOWN_TRANSACTION, DisputeRecord
from escrow_reconciler.domain.status_mapper import map_dispute_status, map_ruling
from escrow_reconciler.ledger.decoding import snapshot_from_record
from escrow_reconciler.logging_config import get_logger
from escrow_reconciler.services.fanout import gather_isolated
from escrow_reconciler.services.transaction_reader import TransactionReader

if TYPE_CHECKING:
    from escrow_reconciler.domain.collaborators import LedgerClient
    from escrow_reconciler.domain.models import TransactionSnapshot
    from escrow_reconciler.services.dispute_index import DisputeIndex

logger = get_logger(__name__)


def _to_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class DisputeResolver:
    """Builds DisputeRecords and correlates dispute ids back to transactions."""

    def __init__(
        self,
        ledger: LedgerClient,
        reader: TransactionReader | None = None,
        reverse_lookup_cap: int | None = None,
    ) -> None:
        """Initialize with optional overrides (defaults come from config)."""
        self._ledger = ledger
        self._reader = reader or TransactionReader(ledger)
        self._reverse_lookup_cap = reverse_lookup_cap

    @property
    def reverse_lookup_cap(self) -> int:
        if self._reverse_lookup_cap is not None:
            return self._reverse_lookup_cap
        return get_settings().reverse_lookup_cap

    @property
    def has_arbitrator(self) -> bool:
        return bool(getattr(self._ledger, "supports_arbitrator", False))

    # ------------------------------------------------------------------
    # Dispute resolution
    # ------------------------------------------------------------------

    async def resolve(
        self,
        transaction_id: str,
        snapshot: TransactionSnapshot | None = None,
    ) -> DisputeRecord | None:
        """Return the dispute of a transaction, or None if it has none.

        Args:
            transaction_id: The escrow transaction id.
            snapshot: A snapshot the caller already read. Read from the
                ledger when omitted.

        Raises:
            LedgerReadError: If the snapshot, arbitrator address or
                arbitrator extra data cannot be read.
        """
        transaction_id = str(transaction_id)
        if snapshot is None:
            snapshot = await self._reader.read_snapshot(transaction_id)
        if not snapshot.has_dispute:
            return None

        dispute_id = snapshot.dispute_id
        accessors = await gather_isolated({
            "arbitrator_address": self._ledger.arbitrator_address(),
            "arbitrator_extra_data": self._ledger.arbitrator_extra_data(),
        })
        if accessors.failures:
            failure = accessors.failures[0]
            raise LedgerReadError(failure.source, str(failure.error), transaction_id) from failure.error

        record = DisputeRecord(
            dispute_id=dispute_id,
            transaction_id=transaction_id,
            arbitrator=accessors.successes["arbitrator_address"],
            arbitrator_extra_data=accessors.successes["arbitrator_extra_data"],
        )

        if not self.has_arbitrator:
            logger.debug(
                "resolver.arbitrator_unavailable",
                transaction_id=transaction_id,
                dispute_id=dispute_id,
            )
            return record

        return await self._enrich(record)

    async def _enrich(self, record: DisputeRecord) -> DisputeRecord:
        dispute_id = record.dispute_id
        probes = await gather_isolated({
            "status": self._ledger.call_arbitrator(ArbitratorMethod.DISPUTE_STATUS, dispute_id),
            "ruling": self._ledger.call_arbitrator(ArbitratorMethod.CURRENT_RULING, dispute_id),
            "appeal_period": self._ledger.call_arbitrator(ArbitratorMethod.APPEAL_PERIOD, dispute_id),
        })

        for failure in probes.failures:
            # Appeal periods are optional; their absence is expected on some arbitrators
            log = logger.debug if failure.source == "appeal_period" else logger.warning
            log(
                "resolver.probe_failed",
                dispute_id=dispute_id,
                probe=failure.source,
                error=str(failure.error),
            )

        status = record.status
        if "status" in probes.successes:
            status = map_dispute_status(_to_int(probes.successes["status"]))

        ruling = record.ruling
        if "ruling" in probes.successes:
            ruling = map_ruling(_to_int(probes.successes["ruling"]))

        start, end = self._appeal_bounds(dispute_id, probes.successes.get("appeal_period"))

        return DisputeRecord(
            dispute_id=record.dispute_id,
            transaction_id=record.transaction_id,
            arbitrator=record.arbitrator,
            arbitrator_extra_data=record.arbitrator_extra_data,
            status=status,
            ruling=ruling,
            appeal_period_start=start,
            appeal_period_end=end,
        )

    @staticmethod
    def _appeal_bounds(dispute_id: int, value: Any) -> tuple[int | None, int | None]:
        if value is None:
            return None, None
        try:
            start, end = value
        except (TypeError, ValueError):
            logger.warning("resolver.appeal_period_malformed", dispute_id=dispute_id, value=repr(value))
            return None, None
        start_int, end_int = _to_int(start), _to_int(end)
        if start_int is None or end_int is None:
            logger.warning("resolver.appeal_period_malformed", dispute_id=dispute_id, value=repr(value))
            return None, None
        return start_int, end_int

    # ------------------------------------------------------------------
    # Reverse lookup
    # ------------------------------------------------------------------

    async def find_transaction_for_dispute(
        self,
        dispute_id: int,
        index: DisputeIndex | None = None,
    ) -> str:
        """Return the id of the transaction that owns ``dispute_id``.

        The index is consulted first. Otherwise the first
        ``reverse_lookup_cap`` transaction records are scanned in id order;
        the cap bounds the cost of this linear search. Hits from the scan are
        added to the index.

        Returns:
            The transaction id, or UNKNOWN_TRANSACTION if the dispute was not
            found within the cap or the ledger failed. Dispute id 0 means
            "no dispute" and is always UNKNOWN_TRANSACTION.
        """
        if dispute_id == 0:
            return UNKNOWN_TRANSACTION

        if index is not None:
            hit = index.lookup(dispute_id)
            if hit is not None:
                return hit

        try:
            count = int(await self._ledger.transaction_count())
            limit = min(count, self.reverse_lookup_cap)
            for position in range(limit):
                transaction_id = str(position)
                raw = await self._ledger.read_transaction(transaction_id)
                if snapshot_from_record(transaction_id, raw).dispute_id == dispute_id:
                    if index is not None:
                        index.record(dispute_id, transaction_id)
                    return transaction_id
        except Exception as exc:
            logger.warning(
                "resolver.reverse_lookup_failed",
                dispute_id=dispute_id,
                error=str(exc),
            )
            return UNKNOWN_TRANSACTION

        logger.info(
            "resolver.reverse_lookup_exhausted",
            dispute_id=dispute_id,
            scanned=limit,
        )
        return UNKNOWN_TRANSACTION

    # ------------------------------------------------------------------
    # Arbitrator parameters
    # ------------------------------------------------------------------

    async def get_fee_timeout(self) -> int:
        """Return the arbitration fee timeout in seconds."""
        try:
            return int(await self._ledger.fee_timeout())
        except Exception as err:
            raise LedgerReadError("fee_timeout", str(err)) from err

    async def get_arbitration_cost(self) -> int:
        """Return the cost of creating a dispute, in the smallest unit.

        Raises:
            ConfigurationError: If the ledger client exposes no arbitrator.
        """
        self._require_arbitrator("arbitration cost")
        extra_data = await self._extra_data()
        try:
            return int(await self._ledger.call_arbitrator(ArbitratorMethod.ARBITRATION_COST, extra_data))
        except Exception as err:
            raise LedgerReadError("arbitration_cost", str(err)) from err

    async def get_appeal_cost(self, dispute_id: int) -> int:
        """Return the cost of appealing ``dispute_id``, in the smallest unit.

        Raises:
            ConfigurationError: If the ledger client exposes no arbitrator.
        """
        self._require_arbitrator("appeal cost")
        extra_data = await self._extra_data()
        try:
            return int(
                await self._ledger.call_arbitrator(ArbitratorMethod.APPEAL_COST, dispute_id, extra_data)
            )
        except Exception as err:
            raise LedgerReadError("appeal_cost", str(err)) from err

    def _require_arbitrator(self, purpose: str) -> None:
        if not self.has_arbitrator:
            raise ConfigurationError(f"Arbitrator contract not configured; cannot read {purpose}")

    async def _extra_data(self) -> bytes:
        try:
            return await self._ledger.arbitrator_extra_data()
        except Exception as err:
            raise LedgerReadError("arbitrator_extra_data", str(err)) from err
