"""In-memory collaborators for the test suite."""

from __future__ import annotations

import json
from collections import defaultdict
from typing import Any

from escrow_reconciler.domain.enums import ArbitratorMethod, EventKind

# Indexed argument each event kind is filtered on by the contract
_FILTER_ARG = {
    EventKind.META_EVIDENCE: "meta_evidence_id",
    EventKind.PAYMENT: "transaction_id",
    EventKind.HAS_TO_PAY_FEE: "transaction_id",
    EventKind.DISPUTE: "dispute_id",
    EventKind.EVIDENCE: "evidence_group_id",
    EventKind.RULING: "dispute_id",
}

SENDER = "0x1111111111111111111111111111111111111111"
RECEIVER = "0x2222222222222222222222222222222222222222"
ARBITRATOR = "0x3333333333333333333333333333333333333333"


def raw_transaction(
    status: int = 0,
    last_interaction: int = 1000,
    timeout_payment: int = 600,
    dispute_id: int = 0,
    amount: int = 10**18,
    **overrides: Any,
) -> dict[str, Any]:
    record = {
        "sender": SENDER,
        "receiver": RECEIVER,
        "amount": amount,
        "status": status,
        "timeout_payment": timeout_payment,
        "last_interaction": last_interaction,
        "dispute_id": dispute_id,
        "sender_fee": 0,
        "receiver_fee": 0,
    }
    record.update(overrides)
    return record


def raw_event(block_number: int | None, log_index: int = 0, **args: Any) -> dict[str, Any]:
    return {
        "block_number": block_number,
        "transaction_hash": f"0x{(block_number or 0):064x}",
        "block_hash": f"0x{(block_number or 0) + 1:064x}",
        "log_index": log_index,
        "args": args,
    }


class FakeLedger:
    """Ledger client double backed by dicts.

    ``fail`` maps a method name to an exception raised on every call;
    ``kind_failures`` does the same per event kind for query_events.
    """

    def __init__(self, head: int = 500, supports_arbitrator: bool = True) -> None:
        self.head = head
        self.supports_arbitrator = supports_arbitrator
        self.transactions: dict[str, dict[str, Any]] = {}
        self.events: dict[EventKind, list[dict[str, Any]]] = defaultdict(list)
        self.arbitrator: dict[ArbitratorMethod, Any] = {}
        self.addresses: dict[str, list[str]] = {}
        self.fail: dict[str, Exception] = {}
        self.kind_failures: dict[EventKind, Exception] = {}
        self.calls: list[tuple] = []
        self.fee_timeout_seconds = 3600
        self.extra_data = b"\x00\x01"

    def add_transaction(self, transaction_id: str, **fields: Any) -> None:
        self.transactions[str(transaction_id)] = raw_transaction(**fields)

    def add_event(self, kind: EventKind, block_number: int | None, log_index: int = 0, **args: Any) -> None:
        self.events[kind].append(raw_event(block_number, log_index, **args))

    def _check(self, method: str) -> None:
        if method in self.fail:
            raise self.fail[method]

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)

    async def read_transaction(self, transaction_id: str) -> dict[str, Any]:
        self.calls.append(("read_transaction", transaction_id))
        self._check("read_transaction")
        if transaction_id not in self.transactions:
            raise KeyError(f"no transaction {transaction_id}")
        return self.transactions[transaction_id]

    async def query_events(self, kind, filter_key, from_block, to_block) -> list[dict[str, Any]]:
        self.calls.append(("query_events", kind, filter_key, from_block, to_block))
        self._check("query_events")
        if kind in self.kind_failures:
            raise self.kind_failures[kind]
        arg = _FILTER_ARG[kind]
        results = []
        for record in self.events[kind]:
            block = record["block_number"]
            if isinstance(block, int) and not from_block <= block <= to_block:
                continue
            if filter_key is not None and str(record["args"].get(arg)) != str(filter_key):
                continue
            results.append(record)
        return results

    async def head_block(self) -> int:
        self.calls.append(("head_block",))
        self._check("head_block")
        return self.head

    async def block_timestamp(self, block_number: int) -> int:
        self.calls.append(("block_timestamp", block_number))
        self._check("block_timestamp")
        return 1_600_000_000 + block_number * 12

    async def transaction_count(self) -> int:
        self.calls.append(("transaction_count",))
        self._check("transaction_count")
        return len(self.transactions)

    async def transaction_ids_for_address(self, address: str) -> list[str]:
        self.calls.append(("transaction_ids_for_address", address))
        self._check("transaction_ids_for_address")
        return self.addresses.get(address, [])

    async def arbitrator_address(self) -> str:
        self.calls.append(("arbitrator_address",))
        self._check("arbitrator_address")
        return ARBITRATOR

    async def arbitrator_extra_data(self) -> bytes:
        self.calls.append(("arbitrator_extra_data",))
        self._check("arbitrator_extra_data")
        return self.extra_data

    async def fee_timeout(self) -> int:
        self.calls.append(("fee_timeout",))
        self._check("fee_timeout")
        return self.fee_timeout_seconds

    async def call_arbitrator(self, method: ArbitratorMethod, *args: Any) -> Any:
        self.calls.append(("call_arbitrator", method, *args))
        response = self.arbitrator.get(method)
        if isinstance(response, Exception):
            raise response
        if response is None:
            raise NotImplementedError(f"arbitrator does not implement {method}")
        return response


class FakeObjectStore:
    """Object store double keyed by URI."""

    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}

    async def fetch(self, uri: str) -> bytes:
        if uri not in self.blobs:
            raise FileNotFoundError(uri)
        return self.blobs[uri]

    async def put(self, data: bytes) -> str:
        uri = f"/ipfs/Qm{len(self.blobs):044d}/document.json"
        self.blobs[uri] = data
        return uri

    def put_json(self, uri: str, document: Any) -> None:
        self.blobs[uri] = json.dumps(document).encode()
