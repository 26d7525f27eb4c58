"""
Gluon: exchange amounts and unsigned transactions for a two-token reserve protocol.

The reserve splits a base asset into a stable and a volatile token (fission),
redeems them (fusion) and converts one into the other at an oracle-derived
price (transmutation). Every computation reproduces the reserve contract's
integer arithmetic exactly.

Public API:
- `gluon.core`: ratio, volume, fee and exchange kernels
- `gluon.state`: ledger records and reserve/oracle views
- `gluon.integration`: assembler, gateway, configuration, `ProtocolFacade`
"""

from .core import (
    ConfigurationError,
    GluonError,
    InsufficientFunds,
    InvalidEpochRequest,
    Operation,
    RecordDecodeError,
    UpstreamUnavailable,
)
from .state import LedgerRecord, OracleRecord, ReserveRecord, TokenPair
from .core.exchange import (
    fission,
    fusion,
    transmute_from_stable,
    transmute_to_stable,
)
from .integration import GluonConfig, ProtocolFacade, Snapshot, TransactionPlan

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "GluonError",
    "InsufficientFunds",
    "InvalidEpochRequest",
    "Operation",
    "RecordDecodeError",
    "UpstreamUnavailable",
    "LedgerRecord",
    "OracleRecord",
    "ReserveRecord",
    "TokenPair",
    "fission",
    "fusion",
    "transmute_from_stable",
    "transmute_to_stable",
    "GluonConfig",
    "ProtocolFacade",
    "Snapshot",
    "TransactionPlan",
]
