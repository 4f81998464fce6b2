"""Raw contract codes to domain enums.

All three mappings are total: a code outside the table falls back to the
first member of the enum instead of raising. For rulings this makes an
unrecognized code indistinguishable from a genuine RefusedToRule.
"""

from __future__ import annotations

from typing import Any

from escrow_reconciler.domain.enums import DisputeStatus, Ruling, TransactionStatus

_TRANSACTION_STATUS_CODES: dict[int, TransactionStatus] = {
    0: TransactionStatus.NO_DISPUTE,
    1: TransactionStatus.WAITING_SENDER,
    2: TransactionStatus.WAITING_RECEIVER,
    3: TransactionStatus.DISPUTE_CREATED,
    4: TransactionStatus.RESOLVED,
}

_DISPUTE_STATUS_CODES: dict[int, DisputeStatus] = {
    0: DisputeStatus.WAITING,
    1: DisputeStatus.APPEALABLE,
    2: DisputeStatus.SOLVED,
}

_RULING_CODES: dict[int, Ruling] = {
    0: Ruling.REFUSED_TO_RULE,
    1: Ruling.SENDER_WINS,
    2: Ruling.RECEIVER_WINS,
}


def _lookup(table: dict[int, Any], code: Any, default: Any) -> Any:
    # bool is an int subclass but never a valid contract code
    if isinstance(code, bool) or not isinstance(code, int):
        return default
    return table.get(code, default)


def map_status(code: Any) -> TransactionStatus:
    """Map a raw escrow status code to a TransactionStatus (default NoDispute)."""
    return _lookup(_TRANSACTION_STATUS_CODES, code, TransactionStatus.NO_DISPUTE)


def map_dispute_status(code: Any) -> DisputeStatus:
    """Map an arbitrator dispute status code to a DisputeStatus (default Waiting)."""
    return _lookup(_DISPUTE_STATUS_CODES, code, DisputeStatus.WAITING)


def map_ruling(code: Any) -> Ruling:
    """Map an arbitrator ruling code to a Ruling (default RefusedToRule)."""
    return _lookup(_RULING_CODES, code, Ruling.REFUSED_TO_RULE)
