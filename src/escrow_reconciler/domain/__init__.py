"""Domain layer: pure reconciliation rules with zero ledger dependencies."""

from escrow_reconciler.domain.collaborators import LedgerClient, ObjectStore
from escrow_reconciler.domain.enums import (
    ArbitratorMethod,
    DisputeStatus,
    EventKind,
    Party,
    Ruling,
    TransactionStatus,
)
from escrow_reconciler.domain.events import (
    BaseEvent,
    DisputeEvent,
    DomainEvent,
    EvidenceEvent,
    HasToPayFeeEvent,
    MetaEvidenceEvent,
    PaymentEvent,
    RulingEvent,
    merge_history,
)
from escrow_reconciler.domain.exceptions import (
    ConfigurationError,
    LedgerReadError,
    MalformedRecordError,
    MetaEvidenceError,
    ReconcilerError,
    SubscriptionClosedError,
)
from escrow_reconciler.domain.lifecycle import (
    TransactionLifecycle,
    allowed_actions,
    validate_transition,
)
from escrow_reconciler.domain.models import (
    UNKNOWN_TRANSACTION,
    DisputeRecord,
    TimeoutEligibility,
    TransactionSnapshot,
    TransactionState,
)
from escrow_reconciler.domain.status_mapper import map_dispute_status, map_ruling, map_status
from escrow_reconciler.domain.timeout_policy import can_execute, can_time_out

__all__ = [
    "ArbitratorMethod",
    "BaseEvent",
    "ConfigurationError",
    "DisputeEvent",
    "DisputeRecord",
    "DisputeStatus",
    "DomainEvent",
    "EventKind",
    "EvidenceEvent",
    "HasToPayFeeEvent",
    "LedgerClient",
    "LedgerReadError",
    "MalformedRecordError",
    "MetaEvidenceError",
    "MetaEvidenceEvent",
    "ObjectStore",
    "Party",
    "PaymentEvent",
    "ReconcilerError",
    "Ruling",
    "RulingEvent",
    "SubscriptionClosedError",
    "TimeoutEligibility",
    "TransactionLifecycle",
    "TransactionSnapshot",
    "TransactionState",
    "TransactionStatus",
    "UNKNOWN_TRANSACTION",
    "allowed_actions",
    "can_execute",
    "can_time_out",
    "map_dispute_status",
    "map_ruling",
    "map_status",
    "merge_history",
    "validate_transition",
]
