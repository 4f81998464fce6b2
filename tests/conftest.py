"""Shared test fixtures for the escrow reconciler test suite.

Provides:
    - An in-memory ledger seeded with one disputed and one quiet transaction
    - An in-memory object store
    - Explicit settings so tests do not depend on the environment
"""

from __future__ import annotations

import pytest
from fakes import FakeLedger, FakeObjectStore

from escrow_reconciler.config import Settings, get_settings
from escrow_reconciler.domain.enums import ArbitratorMethod, EventKind

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def default_settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Pin settings to their defaults regardless of the environment."""
    get_settings.cache_clear()
    settings = Settings(_env_file=None)
    monkeypatch.setattr("escrow_reconciler.config.get_settings", lambda: settings)
    for module in (
        "escrow_reconciler.services.dispute_resolver",
        "escrow_reconciler.services.event_aggregator",
        "escrow_reconciler.services.subscriptions",
    ):
        monkeypatch.setattr(f"{module}.get_settings", lambda: settings)
    return settings


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def ledger() -> FakeLedger:
    """Return an empty ledger with head block 500."""
    return FakeLedger()


@pytest.fixture
def seeded_ledger() -> FakeLedger:
    """Return a ledger with a full dispute on transaction 1 and a quiet transaction 0.

    Transaction 1 history: MetaEvidence (10), Payment (20), HasToPayFee (30),
    Dispute 7 (40), Evidence (45), Ruling (60).
    """
    fake = FakeLedger()
    fake.add_transaction("0", status=0)
    fake.add_transaction("1", status=3, dispute_id=7)

    fake.add_event(EventKind.META_EVIDENCE, 5, meta_evidence_id=0, evidence="/ipfs/meta-0.json")
    fake.add_event(EventKind.META_EVIDENCE, 10, meta_evidence_id=1, evidence="/ipfs/meta-1.json")
    fake.add_event(EventKind.PAYMENT, 20, transaction_id=1, amount=500, party="0xsender")
    fake.add_event(EventKind.HAS_TO_PAY_FEE, 30, transaction_id=1, party=1)
    fake.add_event(
        EventKind.DISPUTE, 40,
        arbitrator="0xarb", dispute_id=7, meta_evidence_id=1, evidence_group_id=1,
    )
    fake.add_event(
        EventKind.EVIDENCE, 45,
        arbitrator="0xarb", party="0xreceiver", evidence_group_id=1, evidence="/ipfs/ev.json",
    )
    fake.add_event(EventKind.RULING, 60, arbitrator="0xarb", dispute_id=7, ruling=2)

    fake.arbitrator = {
        ArbitratorMethod.DISPUTE_STATUS: 1,
        ArbitratorMethod.CURRENT_RULING: 2,
        ArbitratorMethod.APPEAL_PERIOD: (1_700_000_000, 1_700_086_400),
    }
    return fake


@pytest.fixture
def object_store() -> FakeObjectStore:
    return FakeObjectStore()
