"""Escrow Reconciler: domain state reconstructed from escrow contract events.

Usage:
    from escrow_reconciler import EscrowStateFacade
    facade = EscrowStateFacade(ledger_client)
    state = await facade.get_current_state("42")
    history = await facade.get_transaction_history("42")
"""

from escrow_reconciler.services.state_facade import EscrowStateFacade

__version__ = "0.1.0"

__all__ = ["EscrowStateFacade", "__version__"]
