"""
Exchange amount formulas for fission, fusion and transmutation.

Pure functions over an immutable reserve snapshot. Quote functions return the
token amounts only; the `*_exchange()` variants also derive the successor
reserve record and the fee outputs for the same operation.

Operation order matters: every product and division below is laid out exactly
as the reserve contract evaluates it, since moving a truncation changes the
result by up to one unit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ..state.reserve import OracleRecord, ReserveRecord, TokenPair, with_delta
from .fees import FeeOutputSpec, FeeSchedule, Operation, dev_fee, fee_outputs
from .math import BLOCKS_PER_DAY, FISSION_LEVY, FUSION_LEVY, PRECISION, require_non_negative, require_positive, tdiv
from .ratio import base_volume, fusion_ratio, stable_price, volatile_price, volume_decay
from .volume import Direction, VolumeState


@dataclass(frozen=True)
class Transmutation:
    amount_in: int
    amount_out: int
    base_volume: int  # base-asset value of `amount_in`
    volume_state: VolumeState  # buckets and anchor after recording this trade


@dataclass(frozen=True)
class Exchange:
    """One operation against the reserve: what the user moves and the resulting reserve."""

    operation: Operation
    base_volume: int
    # Token amounts moved between reserve and user. Positive = paid to the user.
    stable_to_user: int
    volatile_to_user: int
    dev_fee: int
    successor: ReserveRecord
    fees: Tuple[FeeOutputSpec, ...]


def _require_operable(reserve: ReserveRecord) -> int:
    return require_positive("fissioned base", reserve.fissioned_base)


def fission(reserve: ReserveRecord, erg_in: int) -> TokenPair:
    """Tokens minted for `erg_in` base units, net of the 0.1% issuance levy."""
    require_non_negative("erg_in", erg_in)
    fissioned = _require_operable(reserve)
    keep = PRECISION - FISSION_LEVY
    return TokenPair(
        stable=tdiv(tdiv(erg_in * reserve.circulating_stable * keep, fissioned), PRECISION),
        volatile=tdiv(tdiv(erg_in * reserve.circulating_volatile * keep, fissioned), PRECISION),
    )


def fusion(reserve: ReserveRecord, erg_out: int) -> TokenPair:
    """Tokens burned to redeem `erg_out` base units, 0.5% redemption levy included."""
    require_non_negative("erg_out", erg_out)
    fissioned = _require_operable(reserve)
    denominator = fissioned * (PRECISION - FUSION_LEVY)
    return TokenPair(
        stable=tdiv(erg_out * reserve.circulating_stable * PRECISION, denominator),
        volatile=tdiv(erg_out * reserve.circulating_volatile * PRECISION, denominator),
    )


def volume_state_of(reserve: ReserveRecord) -> VolumeState:
    return VolumeState(
        to_stable=reserve.volume_to_stable,
        to_volatile=reserve.volume_to_volatile,
        anchor_height=reserve.last_epoch_anchor_height,
    )


def _transmute(
    reserve: ReserveRecord,
    oracle: OracleRecord,
    amount_in: int,
    height: int,
    direction: Direction,
    blocks_per_day: int,
) -> Transmutation:
    require_non_negative("amount_in", amount_in)
    require_non_negative("height", height)
    fissioned = _require_operable(reserve)
    ratio = fusion_ratio(reserve, oracle)

    if direction is Direction.TO_STABLE:
        price = volatile_price(reserve, oracle)
        acting_supply = reserve.circulating_volatile
        other_supply = reserve.circulating_stable
        other_term, denominator = PRECISION - ratio, ratio
    else:
        price = stable_price(reserve, oracle)
        acting_supply = reserve.circulating_stable
        other_supply = reserve.circulating_volatile
        other_term, denominator = ratio, PRECISION - ratio
    require_positive("fusion ratio term", denominator)

    volume = base_volume(price, amount_in)
    state = volume_state_of(reserve).record(direction, height, volume, blocks_per_day)
    if direction is Direction.TO_STABLE:
        phi = volume_decay(fissioned, state.to_stable, state.to_volatile)
    else:
        phi = volume_decay(fissioned, state.to_volatile, state.to_stable)
    decay = PRECISION - phi
    if decay <= 0:
        raise ValueError(f"recent {direction.value} volume exhausts the reserve: decay {decay}")

    r1 = tdiv(amount_in * decay, acting_supply)
    r2 = tdiv(other_term * other_supply, PRECISION)
    amount_out = tdiv(r1 * r2, denominator)
    return Transmutation(amount_in=amount_in, amount_out=amount_out, base_volume=volume, volume_state=state)


def transmute_to_stable(
    reserve: ReserveRecord,
    oracle: OracleRecord,
    volatile_in: int,
    height: int,
    blocks_per_day: int = BLOCKS_PER_DAY,
) -> Transmutation:
    """Stable tokens received for `volatile_in` volatile tokens at `height`."""
    return _transmute(reserve, oracle, volatile_in, height, Direction.TO_STABLE, blocks_per_day)


def transmute_from_stable(
    reserve: ReserveRecord,
    oracle: OracleRecord,
    stable_in: int,
    height: int,
    blocks_per_day: int = BLOCKS_PER_DAY,
) -> Transmutation:
    """Volatile tokens received for `stable_in` stable tokens at `height`."""
    return _transmute(reserve, oracle, stable_in, height, Direction.TO_VOLATILE, blocks_per_day)


def fission_exchange(reserve: ReserveRecord, erg_in: int, schedule: FeeSchedule) -> Exchange:
    minted = fission(reserve, erg_in)
    fee = dev_fee(erg_in, reserve, schedule)
    successor = with_delta(
        reserve,
        token_deltas={"stable": -minted.stable, "volatile": -minted.volatile},
        field_deltas={"value": erg_in, "repaid_fee": fee},
    )
    return Exchange(
        operation=Operation.FISSION,
        base_volume=erg_in,
        stable_to_user=minted.stable,
        volatile_to_user=minted.volatile,
        dev_fee=fee,
        successor=successor,
        fees=tuple(fee_outputs(erg_in, reserve, schedule, Operation.FISSION)),
    )


def fusion_exchange(reserve: ReserveRecord, erg_out: int, schedule: FeeSchedule) -> Exchange:
    burned = fusion(reserve, erg_out)
    fee = dev_fee(erg_out, reserve, schedule)
    successor = with_delta(
        reserve,
        token_deltas={"stable": burned.stable, "volatile": burned.volatile},
        field_deltas={"value": -erg_out, "repaid_fee": fee},
    )
    return Exchange(
        operation=Operation.FUSION,
        base_volume=erg_out,
        stable_to_user=-burned.stable,
        volatile_to_user=-burned.volatile,
        dev_fee=fee,
        successor=successor,
        fees=tuple(fee_outputs(erg_out, reserve, schedule, Operation.FUSION)),
    )


def _transmute_successor(reserve: ReserveRecord, trade: Transmutation, token_deltas, fee: int) -> ReserveRecord:
    return with_delta(
        reserve,
        token_deltas=token_deltas,
        field_deltas={
            "repaid_fee": fee,
            "volume_to_stable": trade.volume_state.to_stable,
            "volume_to_volatile": trade.volume_state.to_volatile,
            "last_epoch_anchor_height": trade.volume_state.anchor_height,
        },
    )


def transmute_to_stable_exchange(
    reserve: ReserveRecord,
    oracle: OracleRecord,
    volatile_in: int,
    height: int,
    schedule: FeeSchedule,
    blocks_per_day: int = BLOCKS_PER_DAY,
) -> Exchange:
    trade = transmute_to_stable(reserve, oracle, volatile_in, height, blocks_per_day)
    fee = dev_fee(trade.base_volume, reserve, schedule)
    successor = _transmute_successor(
        reserve, trade, {"stable": -trade.amount_out, "volatile": volatile_in}, fee
    )
    return Exchange(
        operation=Operation.TRANSMUTE_TO_STABLE,
        base_volume=trade.base_volume,
        stable_to_user=trade.amount_out,
        volatile_to_user=-volatile_in,
        dev_fee=fee,
        successor=successor,
        fees=tuple(fee_outputs(trade.base_volume, reserve, schedule, Operation.TRANSMUTE_TO_STABLE)),
    )


def transmute_from_stable_exchange(
    reserve: ReserveRecord,
    oracle: OracleRecord,
    stable_in: int,
    height: int,
    schedule: FeeSchedule,
    blocks_per_day: int = BLOCKS_PER_DAY,
) -> Exchange:
    trade = transmute_from_stable(reserve, oracle, stable_in, height, blocks_per_day)
    fee = dev_fee(trade.base_volume, reserve, schedule)
    successor = _transmute_successor(
        reserve, trade, {"stable": stable_in, "volatile": -trade.amount_out}, fee
    )
    return Exchange(
        operation=Operation.TRANSMUTE_FROM_STABLE,
        base_volume=trade.base_volume,
        stable_to_user=-stable_in,
        volatile_to_user=trade.amount_out,
        dev_fee=fee,
        successor=successor,
        fees=tuple(fee_outputs(trade.base_volume, reserve, schedule, Operation.TRANSMUTE_FROM_STABLE)),
    )
