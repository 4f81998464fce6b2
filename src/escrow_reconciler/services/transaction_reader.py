"""Transaction Reader: snapshots of escrow transaction records."""

from __future__ import annotations

from typing import TYPE_CHECKING

from escrow_reconciler.domain.exceptions import LedgerReadError, MalformedRecordError
from escrow_reconciler.ledger.decoding import snapshot_from_record
from escrow_reconciler.logging_config import get_logger

if TYPE_CHECKING:
    from escrow_reconciler.domain.collaborators import LedgerClient
    from escrow_reconciler.domain.models import TransactionSnapshot

logger = get_logger(__name__)


class TransactionReader:
    """Reads escrow transactions from the ledger as immutable snapshots."""

    def __init__(self, ledger: LedgerClient) -> None:
        self._ledger = ledger

    async def read_snapshot(self, transaction_id: str) -> TransactionSnapshot:
        """Read one transaction.

        Raises:
            LedgerReadError: If the ledger call fails or the record is malformed.
        """
        transaction_id = str(transaction_id)
        try:
            raw = await self._ledger.read_transaction(transaction_id)
        except Exception as err:
            raise LedgerReadError("read_transaction", str(err), transaction_id) from err

        try:
            return snapshot_from_record(transaction_id, raw)
        except MalformedRecordError as err:
            raise LedgerReadError("read_transaction", err.message, transaction_id) from err

    async def transaction_count(self) -> int:
        try:
            return int(await self._ledger.transaction_count())
        except Exception as err:
            raise LedgerReadError("transaction_count", str(err)) from err

    async def snapshots_for_address(self, address: str) -> list[TransactionSnapshot]:
        """Return snapshots of every transaction where ``address`` is sender or receiver."""
        try:
            transaction_ids = await self._ledger.transaction_ids_for_address(address)
        except Exception as err:
            raise LedgerReadError("transaction_ids_for_address", str(err)) from err

        snapshots = [await self.read_snapshot(str(tid)) for tid in transaction_ids]
        logger.debug("reader.address_snapshots", address=address, count=len(snapshots))
        return snapshots
