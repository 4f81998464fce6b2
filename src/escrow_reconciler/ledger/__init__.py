"""Ledger boundary: raw record validation and decoding."""

from escrow_reconciler.ledger.decoding import EventDecoder, snapshot_from_record
from escrow_reconciler.ledger.records import RawEventRecord, RawTransactionRecord

__all__ = [
    "EventDecoder",
    "RawEventRecord",
    "RawTransactionRecord",
    "snapshot_from_record",
]
