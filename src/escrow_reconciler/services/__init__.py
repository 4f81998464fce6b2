"""Application services: reading, aggregation, dispute resolution and the facade."""

from escrow_reconciler.services.dispute_index import DisputeIndex
from escrow_reconciler.services.dispute_resolver import DisputeResolver
from escrow_reconciler.services.event_aggregator import BlockWindow, EventAggregator
from escrow_reconciler.services.fanout import FanOutResult, SourceFailure, gather_isolated
from escrow_reconciler.services.meta_evidence import MetaEvidence, MetaEvidenceReader
from escrow_reconciler.services.state_facade import EscrowStateFacade
from escrow_reconciler.services.subscriptions import EventSubscriptions, Subscription
from escrow_reconciler.services.transaction_reader import TransactionReader

__all__ = [
    "BlockWindow",
    "DisputeIndex",
    "DisputeResolver",
    "EscrowStateFacade",
    "EventAggregator",
    "EventSubscriptions",
    "FanOutResult",
    "MetaEvidence",
    "MetaEvidenceReader",
    "SourceFailure",
    "Subscription",
    "TransactionReader",
    "gather_isolated",
]
