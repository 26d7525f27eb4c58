"""
Ledger record types and the reserve/oracle record views.
"""

from .codec import ChainCodec
from .records import LedgerRecord, OutputCandidate, TokenAmount, asset_totals, value_total
from .reserve import (
    FeeState,
    OracleRecord,
    ReserveRecord,
    TokenPair,
    decode_oracle,
    decode_reserve,
    to_output,
    with_delta,
)

__all__ = [
    "ChainCodec",
    "LedgerRecord",
    "OutputCandidate",
    "TokenAmount",
    "asset_totals",
    "value_total",
    "FeeState",
    "OracleRecord",
    "ReserveRecord",
    "TokenPair",
    "decode_oracle",
    "decode_reserve",
    "to_output",
    "with_delta",
]
