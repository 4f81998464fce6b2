"""Pydantic models for raw ledger records.

These validate what the ledger client hands back before anything else looks
at it. Ids and amounts arrive as uint256 values (ints or decimal strings),
hashes as hex strings or raw bytes.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _hex(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return value


class RawTransactionRecord(BaseModel):
    """A transaction struct as read from the escrow contract."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    sender: str
    receiver: str
    amount: int = Field(ge=0)
    status: int
    timeout_payment: int = Field(ge=0)
    last_interaction: int = Field(ge=0)
    dispute_id: int = Field(default=0, ge=0)
    sender_fee: int = Field(default=0, ge=0)
    receiver_fee: int = Field(default=0, ge=0)
    created_at: int = Field(default=0, ge=0)

    @field_validator("dispute_id", "sender_fee", "receiver_fee", "created_at", mode="before")
    @classmethod
    def _none_is_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


class RawEventRecord(BaseModel):
    """Envelope of one emitted event; ``args`` is validated per kind."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    block_number: int | None = None
    transaction_hash: str = ""
    block_hash: str = ""
    log_index: int = Field(default=0, ge=0)
    timestamp: int | None = None
    args: dict[str, Any] = Field(default_factory=dict)

    @field_validator("transaction_hash", "block_hash", mode="before")
    @classmethod
    def _bytes_to_hex(cls, value: Any) -> Any:
        return "" if value is None else _hex(value)

    @field_validator("log_index", mode="before")
    @classmethod
    def _none_log_index(cls, value: Any) -> Any:
        return 0 if value is None else value


class _EventArgs(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class MetaEvidenceArgs(_EventArgs):
    meta_evidence_id: int = Field(ge=0)
    evidence: str


class PaymentArgs(_EventArgs):
    transaction_id: int = Field(ge=0)
    amount: int = Field(ge=0)
    party: str


class HasToPayFeeArgs(_EventArgs):
    transaction_id: int = Field(ge=0)
    party: int = Field(ge=0, le=1)


class DisputeArgs(_EventArgs):
    arbitrator: str
    dispute_id: int = Field(ge=0)
    meta_evidence_id: int = Field(ge=0)
    evidence_group_id: int = Field(ge=0)


class EvidenceArgs(_EventArgs):
    arbitrator: str
    party: str
    evidence_group_id: int = Field(ge=0)
    evidence: str


class RulingArgs(_EventArgs):
    arbitrator: str
    dispute_id: int = Field(ge=0)
    ruling: int
