"""Exception types for the Gluon engine.

Every failure is raised synchronously to the caller; nothing here is retried.
"""

from __future__ import annotations

from typing import Mapping


class GluonError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(GluonError):
    """Raised when a required endpoint, asset id or fee parameter is missing or invalid."""


class RecordDecodeError(GluonError, ValueError):
    """Raised when a ledger record is missing fields or carries malformed registers."""


class InvalidEpochRequest(GluonError, ValueError):
    """Raised when more volume buckets are requested than the window holds."""


class UpstreamUnavailable(GluonError):
    """Raised when a ledger gateway call fails."""


class InsufficientFunds(GluonError):
    """Raised when the inputs cannot cover the planned outputs plus the miner fee.

    Attributes
    ----------
    value_shortfall : int
        Missing base-asset amount (0 if the base value is covered).
    asset_shortfalls : Mapping[str, int]
        Missing amount per token id, only for tokens that are short.
    """

    def __init__(self, value_shortfall: int = 0, asset_shortfalls: Mapping[str, int] | None = None) -> None:
        self.value_shortfall = value_shortfall
        self.asset_shortfalls = dict(asset_shortfalls or {})
        parts = []
        if value_shortfall > 0:
            parts.append(f"value short by {value_shortfall}")
        for token_id, amount in sorted(self.asset_shortfalls.items()):
            parts.append(f"{token_id} short by {amount}")
        super().__init__("not enough funds: " + (", ".join(parts) or "unknown shortfall"))
