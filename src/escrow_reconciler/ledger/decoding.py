"""Decoding of raw ledger records into domain values.

Records are validated with the pydantic models in ledger/records.py and then
turned into TransactionSnapshot or one DomainEvent variant. Decoding a batch
is isolated per record: a malformed record is dropped and logged, a missing
block timestamp becomes 0.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from escrow_reconciler.domain.enums import EventKind, Party
from escrow_reconciler.domain.events import (
    BaseEvent,
    DisputeEvent,
    EvidenceEvent,
    HasToPayFeeEvent,
    MetaEvidenceEvent,
    PaymentEvent,
    RulingEvent,
)
from escrow_reconciler.domain.exceptions import MalformedRecordError
from escrow_reconciler.domain.models import UNKNOWN_TRANSACTION, TransactionSnapshot
from escrow_reconciler.domain.status_mapper import map_ruling
from escrow_reconciler.ledger.records import (
    DisputeArgs,
    EvidenceArgs,
    HasToPayFeeArgs,
    MetaEvidenceArgs,
    PaymentArgs,
    RawEventRecord,
    RawTransactionRecord,
    RulingArgs,
)
from escrow_reconciler.logging_config import get_logger

if TYPE_CHECKING:
    from escrow_reconciler.domain.collaborators import LedgerClient

logger = get_logger(__name__)


def snapshot_from_record(transaction_id: str, raw: Mapping[str, Any]) -> TransactionSnapshot:
    """Build a TransactionSnapshot from a raw transaction record.

    Raises:
        MalformedRecordError: If the record does not validate.
    """
    try:
        record = RawTransactionRecord.model_validate(dict(raw))
    except (ValidationError, TypeError) as err:
        raise MalformedRecordError("transaction", str(err)) from err

    return TransactionSnapshot(
        transaction_id=str(transaction_id),
        sender=record.sender,
        receiver=record.receiver,
        amount=record.amount,
        raw_status=record.status,
        timeout_payment=record.timeout_payment,
        last_interaction=record.last_interaction,
        created_at=record.created_at,
        dispute_id=record.dispute_id,
        sender_fee=record.sender_fee,
        receiver_fee=record.receiver_fee,
    )


def _envelope(record: RawEventRecord, timestamp: int) -> dict[str, Any]:
    return {
        "block_number": record.block_number,
        "transaction_hash": record.transaction_hash,
        "block_hash": record.block_hash,
        "log_index": record.log_index,
        "timestamp": timestamp,
    }


def _build_meta_evidence(record, args: MetaEvidenceArgs, timestamp, transaction_id) -> BaseEvent:
    return MetaEvidenceEvent(
        transaction_id=str(args.meta_evidence_id),
        meta_evidence_id=str(args.meta_evidence_id),
        evidence=args.evidence,
        **_envelope(record, timestamp),
    )


def _build_payment(record, args: PaymentArgs, timestamp, transaction_id) -> BaseEvent:
    return PaymentEvent(
        transaction_id=str(args.transaction_id),
        amount=args.amount,
        party=args.party,
        **_envelope(record, timestamp),
    )


def _build_has_to_pay_fee(record, args: HasToPayFeeArgs, timestamp, transaction_id) -> BaseEvent:
    return HasToPayFeeEvent(
        transaction_id=str(args.transaction_id),
        party=Party.SENDER if args.party == 0 else Party.RECEIVER,
        **_envelope(record, timestamp),
    )


def _build_dispute(record, args: DisputeArgs, timestamp, transaction_id) -> BaseEvent:
    # The escrow contract uses the transaction id as the meta-evidence id
    return DisputeEvent(
        transaction_id=str(args.meta_evidence_id),
        dispute_id=args.dispute_id,
        arbitrator=args.arbitrator,
        meta_evidence_id=str(args.meta_evidence_id),
        evidence_group_id=str(args.evidence_group_id),
        **_envelope(record, timestamp),
    )


def _build_evidence(record, args: EvidenceArgs, timestamp, transaction_id) -> BaseEvent:
    return EvidenceEvent(
        transaction_id=str(args.evidence_group_id),
        arbitrator=args.arbitrator,
        party=args.party,
        evidence=args.evidence,
        evidence_group_id=str(args.evidence_group_id),
        **_envelope(record, timestamp),
    )


def _build_ruling(record, args: RulingArgs, timestamp, transaction_id) -> BaseEvent:
    # Ruling events carry no transaction id; it is pinned by the caller or reconciled later
    return RulingEvent(
        transaction_id=transaction_id or UNKNOWN_TRANSACTION,
        dispute_id=args.dispute_id,
        ruling=map_ruling(args.ruling),
        arbitrator=args.arbitrator,
        **_envelope(record, timestamp),
    )


_Builder = Callable[[RawEventRecord, Any, int, "str | None"], BaseEvent]

_DECODERS: dict[EventKind, tuple[type[BaseModel], _Builder]] = {
    EventKind.META_EVIDENCE: (MetaEvidenceArgs, _build_meta_evidence),
    EventKind.PAYMENT: (PaymentArgs, _build_payment),
    EventKind.HAS_TO_PAY_FEE: (HasToPayFeeArgs, _build_has_to_pay_fee),
    EventKind.DISPUTE: (DisputeArgs, _build_dispute),
    EventKind.EVIDENCE: (EvidenceArgs, _build_evidence),
    EventKind.RULING: (RulingArgs, _build_ruling),
}


class EventDecoder:
    """Decodes raw event records, caching block timestamps for its lifetime.

    One decoder is created per aggregation session, so the cache never
    outlives a single history request.
    """

    def __init__(self, ledger: LedgerClient) -> None:
        self._ledger = ledger
        self._timestamps: dict[int, int] = {}

    async def decode(
        self,
        kind: EventKind,
        raw: Mapping[str, Any],
        transaction_id: str | None = None,
    ) -> BaseEvent:
        """Decode one raw record of ``kind``.

        Args:
            kind: The event kind the record was queried as.
            raw: The raw record from the ledger client.
            transaction_id: Transaction the caller already knows the record
                belongs to. Only used by kinds that do not carry one.

        Raises:
            MalformedRecordError: If the envelope or the arguments do not validate.
        """
        args_model, build = _DECODERS[kind]
        try:
            record = RawEventRecord.model_validate(dict(raw))
            args = args_model.model_validate(record.args)
        except (ValidationError, TypeError) as err:
            raise MalformedRecordError(kind.value, str(err)) from err

        timestamp = await self._timestamp_for(record)
        return build(record, args, timestamp, transaction_id)

    async def decode_many(
        self,
        kind: EventKind,
        raws: list[Mapping[str, Any]],
        transaction_id: str | None = None,
    ) -> list[BaseEvent]:
        """Decode a batch, dropping records that fail to decode."""
        events: list[BaseEvent] = []
        for raw in raws:
            try:
                events.append(await self.decode(kind, raw, transaction_id))
            except MalformedRecordError as exc:
                logger.warning(
                    "decoder.record_dropped",
                    kind=kind.value,
                    block_number=raw.get("block_number") if isinstance(raw, Mapping) else None,
                    error=exc.message,
                )
        return events

    async def _timestamp_for(self, record: RawEventRecord) -> int:
        if record.timestamp is not None:
            return record.timestamp
        if record.block_number is None:
            return 0
        if record.block_number in self._timestamps:
            return self._timestamps[record.block_number]

        try:
            timestamp = int(await self._ledger.block_timestamp(record.block_number))
        except Exception as exc:
            logger.warning(
                "decoder.timestamp_unavailable",
                block_number=record.block_number,
                error=str(exc),
            )
            return 0

        self._timestamps[record.block_number] = timestamp
        return timestamp
