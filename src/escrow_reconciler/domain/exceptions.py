"""Domain exceptions for the escrow reconciler.

Only mandatory reads and missing capabilities are raised. Failures of
individual event sources or arbitrator probes are not exceptions: they are
collected as SourceFailure values (services/fanout.py) and degrade the result.
"""


class ReconcilerError(Exception):
    """Base exception for all reconciler errors."""

    def __init__(self, message: str, code: str = "RECONCILER_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class ConfigurationError(ReconcilerError):
    """Raised when a required collaborator capability is absent.

    Example: asking for an appeal cost when the ledger client exposes no
    arbitrator contract.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="CONFIGURATION_ERROR")


class LedgerReadError(ReconcilerError):
    """Raised when a mandatory ledger read fails.

    Mandatory reads are the transaction snapshot, the arbitrator address and
    the arbitrator extra data. The collaborator's exception is chained.
    """

    def __init__(self, operation: str, detail: str = "", transaction_id: str | None = None) -> None:
        target = f" for transaction {transaction_id}" if transaction_id is not None else ""
        suffix = f": {detail}" if detail else ""
        super().__init__(
            message=f"Ledger read '{operation}' failed{target}{suffix}",
            code="LEDGER_READ_ERROR",
        )
        self.operation = operation
        self.transaction_id = transaction_id


class MalformedRecordError(ReconcilerError):
    """Raised when a raw ledger record cannot be decoded."""

    def __init__(self, kind: str, detail: str) -> None:
        super().__init__(
            message=f"Malformed {kind} record: {detail}",
            code="MALFORMED_RECORD",
        )
        self.kind = kind


class MetaEvidenceError(ReconcilerError):
    """Raised when a meta-evidence document is missing, not JSON or invalid."""

    def __init__(self, uri: str, detail: str, validation_errors: list | None = None) -> None:
        super().__init__(
            message=f"Invalid meta-evidence at {uri}: {detail}",
            code="META_EVIDENCE_ERROR",
        )
        self.uri = uri
        self.validation_errors = validation_errors or []


class SubscriptionClosedError(ReconcilerError):
    """Raised when receiving from a subscription that has been closed."""

    def __init__(self, handle: int) -> None:
        super().__init__(
            message=f"Subscription {handle} is closed",
            code="SUBSCRIPTION_CLOSED",
        )
        self.handle = handle
