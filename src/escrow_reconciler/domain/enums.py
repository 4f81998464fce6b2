"""Domain enumerations for the escrow reconciler.

String values match the names the escrow and arbitrator contracts use, so they
read the same in logs as in contract documentation. Raw numeric codes are
translated by domain/status_mapper.py.
"""

import enum


class TransactionStatus(enum.StrEnum):
    """Lifecycle states of an escrow transaction.

    Legal transitions are guarded by TransactionLifecycle.
    See domain/lifecycle.py for the transition table.
    """

    NO_DISPUTE = "NoDispute"
    WAITING_SENDER = "WaitingSender"
    WAITING_RECEIVER = "WaitingReceiver"
    DISPUTE_CREATED = "DisputeCreated"
    RESOLVED = "Resolved"


class DisputeStatus(enum.StrEnum):
    """Dispute status as reported by the arbitrator."""

    WAITING = "Waiting"
    APPEALABLE = "Appealable"
    SOLVED = "Solved"


class Ruling(enum.IntEnum):
    """Arbitrator ruling options for this contract family."""

    REFUSED_TO_RULE = 0
    SENDER_WINS = 1
    RECEIVER_WINS = 2


class Party(enum.StrEnum):
    """The two parties of an escrow transaction."""

    SENDER = "Sender"
    RECEIVER = "Receiver"


class EventKind(enum.StrEnum):
    """On-chain event kinds that make up a transaction's history.

    Declaration order is the order histories are assembled in before sorting,
    which decides ties between events in the same block without a log index.
    """

    META_EVIDENCE = "MetaEvidence"
    PAYMENT = "Payment"
    HAS_TO_PAY_FEE = "HasToPayFee"
    DISPUTE = "Dispute"
    EVIDENCE = "Evidence"
    RULING = "Ruling"


class ArbitratorMethod(enum.StrEnum):
    """Read-only arbitrator calls used by the reconciler.

    DISPUTE_STATUS and CURRENT_RULING are required of every arbitrator;
    APPEAL_PERIOD is optional and may fail on arbitrators without appeals.
    """

    DISPUTE_STATUS = "disputeStatus"
    CURRENT_RULING = "currentRuling"
    APPEAL_PERIOD = "appealPeriod"
    ARBITRATION_COST = "arbitrationCost"
    APPEAL_COST = "appealCost"
