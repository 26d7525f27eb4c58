"""
Ledger record value types.

A `LedgerRecord` is an unspent record as returned by the node (an input or data
input); an `OutputCandidate` is a record about to be created by a transaction.
Both are immutable. JSON helpers map to the node's box shape:

    {"boxId", "value", "ergoTree", "assets": [{"tokenId", "amount"}],
     "additionalRegisters": {"R4": <hex>, ...}, "creationHeight",
     "transactionId", "index"}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from ..core.errors import RecordDecodeError

# Type aliases
TokenId = str  # 32-byte hex string
Amount = int  # Non-negative integer (arbitrary precision)

REGISTER_NAMES: Tuple[str, ...] = ("R4", "R5", "R6", "R7", "R8", "R9")


@dataclass(frozen=True)
class TokenAmount:
    token_id: TokenId
    amount: Amount

    def __post_init__(self) -> None:
        if not isinstance(self.token_id, str) or not self.token_id:
            raise ValueError("token_id must be a non-empty string")
        if not isinstance(self.amount, int) or isinstance(self.amount, bool):
            raise TypeError("amount must be an int")
        if self.amount < 0:
            raise ValueError(f"amount must be non-negative: {self.amount}")

    def to_json(self) -> Dict[str, Any]:
        return {"tokenId": self.token_id, "amount": self.amount}


def _amount_of(assets: Iterable[TokenAmount], token_id: TokenId) -> Amount:
    return sum(a.amount for a in assets if a.token_id == token_id)


@dataclass(frozen=True)
class LedgerRecord:
    """An existing (spendable or readable) record on the ledger."""

    record_id: str
    value: int
    spending_script: str
    assets: Tuple[TokenAmount, ...] = ()
    registers: Mapping[str, str] = field(default_factory=dict)
    creation_height: int = 0
    transaction_id: Optional[str] = None
    index: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise TypeError("value must be an int")
        if self.value < 0:
            raise ValueError(f"value must be non-negative: {self.value}")
        if self.creation_height < 0:
            raise ValueError(f"creation_height must be non-negative: {self.creation_height}")
        object.__setattr__(self, "assets", tuple(self.assets))
        object.__setattr__(self, "registers", dict(self.registers))

    def amount_of(self, token_id: TokenId) -> Amount:
        """Return the amount of `token_id` held by this record (0 if absent)."""
        return _amount_of(self.assets, token_id)

    def register(self, name: str) -> str:
        try:
            return self.registers[name]
        except KeyError:
            raise RecordDecodeError(f"record {self.record_id} has no register {name}") from None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "LedgerRecord":
        """Parse a node box JSON object. Raises RecordDecodeError on missing fields."""
        try:
            assets = tuple(
                TokenAmount(token_id=str(a["tokenId"]), amount=int(a["amount"]))
                for a in data.get("assets") or ()
            )
            registers = {k: str(v) for k, v in (data.get("additionalRegisters") or {}).items()}
            index = data.get("index")
            return cls(
                record_id=str(data["boxId"]),
                value=int(data["value"]),
                spending_script=str(data["ergoTree"]),
                assets=assets,
                registers=registers,
                creation_height=int(data.get("creationHeight", 0)),
                transaction_id=data.get("transactionId"),
                index=int(index) if index is not None else None,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise RecordDecodeError(f"malformed ledger record: {exc}") from exc

    def to_json(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "boxId": self.record_id,
            "value": self.value,
            "ergoTree": self.spending_script,
            "assets": [a.to_json() for a in self.assets],
            "additionalRegisters": dict(self.registers),
            "creationHeight": self.creation_height,
        }
        if self.transaction_id is not None:
            out["transactionId"] = self.transaction_id
        if self.index is not None:
            out["index"] = self.index
        return out


@dataclass(frozen=True)
class OutputCandidate:
    """A record to be created by a transaction. `creation_height` is stamped at assembly."""

    value: int
    spending_script: str
    assets: Tuple[TokenAmount, ...] = ()
    registers: Mapping[str, str] = field(default_factory=dict)
    creation_height: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise TypeError("value must be an int")
        if self.value < 0:
            raise ValueError(f"value must be non-negative: {self.value}")
        object.__setattr__(self, "assets", tuple(self.assets))
        object.__setattr__(self, "registers", dict(self.registers))

    def amount_of(self, token_id: TokenId) -> Amount:
        return _amount_of(self.assets, token_id)

    def to_json(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "ergoTree": self.spending_script,
            "assets": [a.to_json() for a in self.assets],
            "additionalRegisters": dict(self.registers),
            "creationHeight": self.creation_height,
        }


def asset_totals(records: Iterable[LedgerRecord | OutputCandidate]) -> Dict[TokenId, Amount]:
    """
    Sum token amounts per token id across `records`.

    Note: the result is a plain dict. Callers that need a deterministic order
    must sort the keys explicitly.
    """
    totals: Dict[TokenId, Amount] = {}
    for record in records:
        for asset in record.assets:
            totals[asset.token_id] = totals.get(asset.token_id, 0) + asset.amount
    return totals


def value_total(records: Iterable[LedgerRecord | OutputCandidate]) -> int:
    return sum(r.value for r in records)
