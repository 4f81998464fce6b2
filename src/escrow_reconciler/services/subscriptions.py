"""Live event subscriptions.

The ledger's push-style event feed is decoded once and fanned out to
subscribers. Each subscription owns a bounded asyncio.Queue; the consumer
drains it with ``await receive()`` or ``async for`` and ends it with
``unsubscribe(handle)``. A full queue discards its oldest event and counts
it in ``dropped``, so a slow consumer never blocks the feed.
"""

from __future__ import annotations

import asyncio
import dataclasses
import itertools
from collections.abc import AsyncIterable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from escrow_reconciler.config import get_settings
from escrow_reconciler.domain.enums import EventKind
from escrow_reconciler.domain.events import BaseEvent, DisputeEvent, RulingEvent
from escrow_reconciler.domain.exceptions import MalformedRecordError, SubscriptionClosedError
from escrow_reconciler.domain.models import UNKNOWN_TRANSACTION
from escrow_reconciler.ledger.decoding import EventDecoder
from escrow_reconciler.logging_config import get_logger
from escrow_reconciler.services.dispute_index import DisputeIndex
from escrow_reconciler.services.dispute_resolver import DisputeResolver

if TYPE_CHECKING:
    from escrow_reconciler.domain.collaborators import LedgerClient

logger = get_logger(__name__)

_CLOSED = object()


class Subscription:
    """One consumer's view of the live event feed."""

    def __init__(
        self,
        handle: int,
        maxsize: int,
        kinds: Iterable[EventKind] | None = None,
        transaction_id: str | None = None,
    ) -> None:
        self.handle = handle
        self.kinds = frozenset(kinds) if kinds is not None else frozenset(EventKind)
        self.transaction_id = transaction_id
        self.dropped = 0
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        # A closed queue always holds exactly one close marker
        return self._queue.qsize() - (1 if self._closed else 0)

    def matches(self, event: BaseEvent) -> bool:
        if event.kind not in self.kinds:
            return False
        return self.transaction_id is None or event.transaction_id == self.transaction_id

    def offer(self, event: Any) -> None:
        """Enqueue without blocking, discarding the oldest item when full."""
        if self._closed:
            return
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
            logger.warning("subscription.event_dropped", handle=self.handle, dropped=self.dropped)
        self._queue.put_nowait(event)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
        self._queue.put_nowait(_CLOSED)

    async def receive(self) -> BaseEvent:
        """Wait for the next event.

        Events queued before unsubscribe are still delivered.

        Raises:
            SubscriptionClosedError: Once the subscription is closed and drained.
        """
        item = await self._queue.get()
        if item is _CLOSED:
            # Leave the marker for any other waiter
            self._queue.put_nowait(_CLOSED)
            raise SubscriptionClosedError(self.handle)
        return item

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> BaseEvent:
        try:
            return await self.receive()
        except SubscriptionClosedError:
            raise StopAsyncIteration from None


class EventSubscriptions:
    """Decodes live ledger events and routes them to subscriptions."""

    def __init__(
        self,
        ledger: LedgerClient,
        resolver: DisputeResolver | None = None,
        queue_size: int | None = None,
    ) -> None:
        self._ledger = ledger
        self._resolver = resolver or DisputeResolver(ledger)
        self._queue_size = queue_size
        self._index = DisputeIndex()
        self._subscriptions: dict[int, Subscription] = {}
        self._handles = itertools.count(1)

    @property
    def active(self) -> int:
        return len(self._subscriptions)

    def subscribe(
        self,
        kinds: Iterable[EventKind] | None = None,
        transaction_id: str | None = None,
        maxsize: int | None = None,
    ) -> Subscription:
        """Open a subscription, optionally filtered by event kinds and transaction."""
        size = maxsize or self._queue_size or get_settings().subscription_queue_size
        subscription = Subscription(
            handle=next(self._handles),
            maxsize=size,
            kinds=kinds,
            transaction_id=str(transaction_id) if transaction_id is not None else None,
        )
        self._subscriptions[subscription.handle] = subscription
        logger.info(
            "subscription.opened",
            handle=subscription.handle,
            kinds=sorted(kind.value for kind in subscription.kinds),
            transaction_id=subscription.transaction_id,
        )
        return subscription

    def unsubscribe(self, handle: int) -> bool:
        """Close the subscription with ``handle``. Returns False if it was not open."""
        subscription = self._subscriptions.pop(handle, None)
        if subscription is None:
            return False
        subscription.close()
        logger.info("subscription.closed", handle=handle, dropped=subscription.dropped)
        return True

    def unsubscribe_all(self) -> None:
        for handle in list(self._subscriptions):
            self.unsubscribe(handle)

    async def publish(self, kind: EventKind, raw: Mapping[str, Any]) -> BaseEvent | None:
        """Decode one raw event and deliver it to matching subscriptions.

        Returns:
            The decoded event, or None if the record was malformed.
        """
        try:
            event = await EventDecoder(self._ledger).decode(kind, raw)
        except MalformedRecordError as exc:
            logger.warning("subscription.record_dropped", kind=kind.value, error=exc.message)
            return None

        if isinstance(event, DisputeEvent):
            self._index.record(event.dispute_id, event.transaction_id)
        elif isinstance(event, RulingEvent) and event.transaction_id == UNKNOWN_TRANSACTION:
            transaction_id = await self._resolver.find_transaction_for_dispute(event.dispute_id, self._index)
            event = dataclasses.replace(event, transaction_id=transaction_id)

        self.deliver(event)
        return event

    def deliver(self, event: BaseEvent) -> int:
        """Offer ``event`` to every matching subscription; returns how many matched."""
        delivered = 0
        for subscription in self._subscriptions.values():
            if subscription.matches(event):
                subscription.offer(event)
                delivered += 1
        return delivered

    async def feed(self, stream: AsyncIterable[tuple[EventKind, Mapping[str, Any]]]) -> int:
        """Publish every (kind, raw record) pair from ``stream``; returns the number decoded."""
        published = 0
        async for kind, raw in stream:
            if await self.publish(kind, raw) is not None:
                published += 1
        return published
