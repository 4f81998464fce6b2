"""Collaborator Protocols.

The reconciler reads the ledger and the object store through these
interfaces only. They are Protocols (structural subtyping), so a concrete
web3 client or an in-memory test double just needs to match the shape.

The domain layer has ZERO imports from any ledger or storage library.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from escrow_reconciler.domain.enums import ArbitratorMethod, EventKind


@runtime_checkable
class LedgerClient(Protocol):
    """Read access to the escrow contract and its arbitrator.

    Every method may raise; the reconciler decides which failures are fatal.
    Transport timeouts belong to the implementation.

    Raw transaction records are mappings with the keys ``sender``,
    ``receiver``, ``amount``, ``status``, ``timeout_payment``,
    ``last_interaction`` and optionally ``dispute_id``, ``sender_fee``,
    ``receiver_fee``, ``created_at``.

    Raw event records are mappings with ``block_number``,
    ``transaction_hash``, optionally ``block_hash``, ``log_index`` and
    ``timestamp``, and an ``args`` mapping of decoded event arguments.
    """

    supports_arbitrator: bool

    async def read_transaction(self, transaction_id: str) -> Mapping[str, Any]:
        """Return the raw record of one escrow transaction."""
        ...

    async def query_events(
        self,
        kind: EventKind,
        filter_key: str | int | None,
        from_block: int,
        to_block: int,
    ) -> list[Mapping[str, Any]]:
        """Return raw events of ``kind`` in [from_block, to_block].

        ``filter_key`` is the kind's indexed correlation key (transaction id,
        dispute id or evidence group id); None means unfiltered.
        """
        ...

    async def head_block(self) -> int:
        """Return the current head block number."""
        ...

    async def block_timestamp(self, block_number: int) -> int:
        """Return the unix timestamp of a block."""
        ...

    async def transaction_count(self) -> int:
        """Return the number of escrow transactions ever created."""
        ...

    async def transaction_ids_for_address(self, address: str) -> list[str]:
        """Return ids of transactions where ``address`` is sender or receiver."""
        ...

    async def arbitrator_address(self) -> str:
        """Return the arbitrator address configured on the escrow contract."""
        ...

    async def arbitrator_extra_data(self) -> bytes:
        """Return the arbitrator extra data configured on the escrow contract."""
        ...

    async def fee_timeout(self) -> int:
        """Return the arbitration fee timeout in seconds."""
        ...

    async def call_arbitrator(self, method: ArbitratorMethod, *args: Any) -> Any:
        """Call a read-only arbitrator method. Only valid if supports_arbitrator."""
        ...


@runtime_checkable
class ObjectStore(Protocol):
    """Content-addressed storage for evidence and meta-evidence documents."""

    async def fetch(self, uri: str) -> bytes:
        """Return the bytes stored under ``uri``."""
        ...

    async def put(self, data: bytes) -> str:
        """Store ``data`` and return its URI."""
        ...
