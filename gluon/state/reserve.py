"""
Reserve and oracle record views.

`decode_reserve()` / `decode_oracle()` turn raw ledger records into strongly
typed, validated values. Successor records are derived with `with_delta()`,
which never mutates its argument, and rendered back into an output with
`to_output()`.

Reserve register layout:
- R4: total supply, Coll[Long] `[stable, volatile]`
- R5: dev-fee script commitment, Coll[Byte]
- R6: fee state, (Long, Long) `(repaid_fee, max_fee)`
- R7: daily volume buckets, volatile -> stable
- R8: daily volume buckets, stable -> volatile
- R9: last epoch anchor height, Long
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Tuple

from ..core.errors import RecordDecodeError
from ..core.math import BUCKET_LEN, FIXED_BUFFER
from .codec import ChainCodec
from .records import LedgerRecord, OutputCandidate, TokenAmount

KG_TO_UNIT_MASS = 1_000


@dataclass(frozen=True)
class TokenPair:
    """A (stable, volatile) amount pair."""

    stable: int
    volatile: int

    def __post_init__(self) -> None:
        for name, v in (("stable", self.stable), ("volatile", self.volatile)):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class FeeState:
    repaid_fee: int
    max_fee: int

    def __post_init__(self) -> None:
        if self.repaid_fee < 0:
            raise ValueError(f"repaid_fee must be non-negative: {self.repaid_fee}")
        if self.max_fee <= 0:
            raise ValueError(f"max_fee must be positive: {self.max_fee}")


@dataclass(frozen=True)
class ReserveRecord:
    """Decoded reserve singleton."""

    value: int
    token_balances: TokenPair
    total_supply: TokenPair
    fee_state: FeeState
    dev_script_commitment: bytes
    volume_to_stable: Tuple[int, ...]
    volume_to_volatile: Tuple[int, ...]
    last_epoch_anchor_height: int
    spending_script: str
    stable_token_id: str
    volatile_token_id: str
    source: Optional[LedgerRecord] = None

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError(f"value must be non-negative: {self.value}")
        object.__setattr__(self, "volume_to_stable", tuple(self.volume_to_stable))
        object.__setattr__(self, "volume_to_volatile", tuple(self.volume_to_volatile))
        for name, buckets in (
            ("volume_to_stable", self.volume_to_stable),
            ("volume_to_volatile", self.volume_to_volatile),
        ):
            if len(buckets) != BUCKET_LEN:
                raise ValueError(f"{name} must have {BUCKET_LEN} buckets, got {len(buckets)}")
        for name, held, total in (
            ("stable", self.token_balances.stable, self.total_supply.stable),
            ("volatile", self.token_balances.volatile, self.total_supply.volatile),
        ):
            if held < 0:
                raise ValueError(f"{name} balance must be non-negative: {held}")
            if total < held:
                raise ValueError(f"{name} total supply {total} is below reserve balance {held}")
        if self.last_epoch_anchor_height < 0:
            raise ValueError("last_epoch_anchor_height must be non-negative")

    @property
    def circulating_stable(self) -> int:
        return self.total_supply.stable - self.token_balances.stable

    @property
    def circulating_volatile(self) -> int:
        return self.total_supply.volatile - self.token_balances.volatile

    @property
    def circulating_supply(self) -> TokenPair:
        return TokenPair(stable=self.circulating_stable, volatile=self.circulating_volatile)

    @property
    def fissioned_base(self) -> int:
        """Base value backing the circulating tokens (record value minus the fixed buffer)."""
        return self.value - FIXED_BUFFER

    @property
    def dev_script(self) -> str:
        return self.dev_script_commitment.hex()


@dataclass(frozen=True)
class OracleRecord:
    """Decoded price-feed singleton. The feed publishes a price per kilogram."""

    price_per_kg: int
    source: Optional[LedgerRecord] = None

    def __post_init__(self) -> None:
        if self.price_per_kg < KG_TO_UNIT_MASS:
            raise ValueError(f"oracle price per kg must be at least {KG_TO_UNIT_MASS}: {self.price_per_kg}")

    @property
    def price_per_unit_mass(self) -> int:
        return self.price_per_kg // KG_TO_UNIT_MASS


def _pair(values: list[int], label: str) -> Tuple[int, int]:
    if len(values) != 2:
        raise RecordDecodeError(f"{label} must hold 2 entries, got {len(values)}")
    return int(values[0]), int(values[1])


def decode_reserve(
    record: LedgerRecord,
    codec: ChainCodec,
    *,
    stable_token_id: str,
    volatile_token_id: str,
) -> ReserveRecord:
    """Decode the reserve singleton. Raises RecordDecodeError on any missing or malformed field."""
    held = {a.token_id for a in record.assets}
    for label, token_id in (("stable", stable_token_id), ("volatile", volatile_token_id)):
        if token_id not in held:
            raise RecordDecodeError(f"reserve record {record.record_id} does not hold the {label} token {token_id}")

    try:
        supply = _pair(codec.decode_long_coll(record.register("R4")), "total supply")
        dev_commitment = codec.decode_byte_coll(record.register("R5"))
        repaid_fee, max_fee = codec.decode_long_pair(record.register("R6"))
        to_stable = tuple(int(v) for v in codec.decode_long_coll(record.register("R7")))
        to_volatile = tuple(int(v) for v in codec.decode_long_coll(record.register("R8")))
        anchor = int(codec.decode_long(record.register("R9")))
        return ReserveRecord(
            value=record.value,
            token_balances=TokenPair(
                stable=record.amount_of(stable_token_id),
                volatile=record.amount_of(volatile_token_id),
            ),
            total_supply=TokenPair(stable=supply[0], volatile=supply[1]),
            fee_state=FeeState(repaid_fee=int(repaid_fee), max_fee=int(max_fee)),
            dev_script_commitment=bytes(dev_commitment),
            volume_to_stable=to_stable,
            volume_to_volatile=to_volatile,
            last_epoch_anchor_height=anchor,
            spending_script=record.spending_script,
            stable_token_id=stable_token_id,
            volatile_token_id=volatile_token_id,
            source=record,
        )
    except RecordDecodeError:
        raise
    except (TypeError, ValueError, IndexError) as exc:
        raise RecordDecodeError(f"malformed reserve record {record.record_id}: {exc}") from exc


def decode_oracle(record: LedgerRecord, codec: ChainCodec) -> OracleRecord:
    try:
        return OracleRecord(price_per_kg=int(codec.decode_long(record.register("R4"))), source=record)
    except RecordDecodeError:
        raise
    except (TypeError, ValueError) as exc:
        raise RecordDecodeError(f"malformed oracle record {record.record_id}: {exc}") from exc


_ADDITIVE_FIELDS = ("value", "repaid_fee")
_REPLACED_FIELDS = ("volume_to_stable", "volume_to_volatile", "last_epoch_anchor_height")


def with_delta(
    record: ReserveRecord,
    token_deltas: Optional[Mapping[str, int]] = None,
    field_deltas: Optional[Mapping[str, Any]] = None,
) -> ReserveRecord:
    """
    Derive a successor reserve record.

    `token_deltas` keys are "stable"/"volatile" and are added to the held token
    balances. In `field_deltas`, "value" and "repaid_fee" are added; the volume
    bucket arrays and "last_epoch_anchor_height" replace the current values.
    The input record is returned untouched.
    """
    token_deltas = dict(token_deltas or {})
    field_deltas = dict(field_deltas or {})
    unknown = set(token_deltas) - {"stable", "volatile"}
    if unknown:
        raise ValueError(f"unknown token deltas: {sorted(unknown)}")
    unknown = set(field_deltas) - set(_ADDITIVE_FIELDS) - set(_REPLACED_FIELDS)
    if unknown:
        raise ValueError(f"unknown field deltas: {sorted(unknown)}")

    balances = TokenPair(
        stable=record.token_balances.stable + token_deltas.get("stable", 0),
        volatile=record.token_balances.volatile + token_deltas.get("volatile", 0),
    )
    changes: dict[str, Any] = {
        "token_balances": balances,
        "value": record.value + field_deltas.get("value", 0),
        "fee_state": replace(
            record.fee_state,
            repaid_fee=record.fee_state.repaid_fee + field_deltas.get("repaid_fee", 0),
        ),
    }
    for name in _REPLACED_FIELDS:
        if name in field_deltas:
            changes[name] = field_deltas[name]
    return replace(record, **changes)


def to_output(record: ReserveRecord, codec: ChainCodec) -> OutputCandidate:
    """Render a (successor) reserve record as an output candidate.

    Asset order follows the source record; R4 and R5 are carried over verbatim.
    """
    if record.source is None:
        raise ValueError("reserve record has no source ledger record")
    source = record.source
    assets = []
    for asset in source.assets:
        if asset.token_id == record.stable_token_id:
            assets.append(TokenAmount(asset.token_id, record.token_balances.stable))
        elif asset.token_id == record.volatile_token_id:
            assets.append(TokenAmount(asset.token_id, record.token_balances.volatile))
        else:
            assets.append(asset)

    registers = dict(source.registers)
    registers["R6"] = codec.encode_long_pair(record.fee_state.repaid_fee, record.fee_state.max_fee)
    registers["R7"] = codec.encode_long_coll(record.volume_to_stable)
    registers["R8"] = codec.encode_long_coll(record.volume_to_volatile)
    registers["R9"] = codec.encode_long(record.last_epoch_anchor_height)
    return OutputCandidate(
        value=record.value,
        spending_script=record.spending_script,
        assets=tuple(assets),
        registers=registers,
    )
