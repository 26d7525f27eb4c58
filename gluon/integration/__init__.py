"""
Integration layer: transaction assembly, ledger access, configuration and the facade.
"""

from .assembler import MINER_FEE_SCRIPT, TransactionPlan, build_transaction, check_conservation, compute_change
from .config import GluonConfig
from .facade import ProtocolFacade, Snapshot
from .gateway import LedgerGateway, NodeGateway, NodeHttpConfig
from .wallet import TRANSMUTE_SELECTOR_EXTENSION, to_wallet_form

__all__ = [
    "MINER_FEE_SCRIPT",
    "TransactionPlan",
    "build_transaction",
    "check_conservation",
    "compute_change",
    "GluonConfig",
    "ProtocolFacade",
    "Snapshot",
    "LedgerGateway",
    "NodeGateway",
    "NodeHttpConfig",
    "TRANSMUTE_SELECTOR_EXTENSION",
    "to_wallet_form",
]
