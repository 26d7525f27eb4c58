"""Fusion ratio, token prices and the transmutation volume decay.

All values are fixed-point with denominator `PRECISION` (1e9). Divisions go
through `tdiv()` so intermediate truncation matches the reserve contract; the
order of multiplications and divisions below is part of the contract.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from .math import PHI0, PHI1, PRECISION, QSTAR, require_non_negative, require_positive, tdiv

if TYPE_CHECKING:
    from ..state.reserve import OracleRecord, ReserveRecord


def fusion_ratio_from(circulating_stable: int, price: int, fissioned_base: int) -> int:
    """``min(qstar, circulating_stable * price / fissioned_base)``."""
    require_non_negative("circulating_stable", circulating_stable)
    require_positive("price", price)
    require_positive("fissioned_base", fissioned_base)
    return min(QSTAR, tdiv(circulating_stable * price, fissioned_base))


def fusion_ratio(reserve: "ReserveRecord", oracle: "OracleRecord") -> int:
    """Share of the fissioned base attributed to the stable token."""
    return fusion_ratio_from(reserve.circulating_stable, oracle.price_per_unit_mass, reserve.fissioned_base)


def stable_price(reserve: "ReserveRecord", oracle: "OracleRecord") -> int:
    """Stable token price in base units, scaled by 1e9."""
    circulating = require_positive("circulating stable supply", reserve.circulating_stable)
    return tdiv(fusion_ratio(reserve, oracle) * reserve.fissioned_base, circulating)


def volatile_price(reserve: "ReserveRecord", oracle: "OracleRecord") -> int:
    """Volatile token price in base units, scaled by 1e9."""
    circulating = require_positive("circulating volatile supply", reserve.circulating_volatile)
    return tdiv((PRECISION - fusion_ratio(reserve, oracle)) * reserve.fissioned_base, circulating)


def volume_decay(reserve_base: int, volume_added: Sequence[int], volume_removed: Sequence[int]) -> int:
    """``phi0 + phi1 * max(0, sum(added) - sum(removed)) / reserve_base``."""
    require_positive("reserve_base", reserve_base)
    net = max(0, sum(volume_added) - sum(volume_removed))
    return PHI0 + tdiv(PHI1 * net, reserve_base)


def base_volume(price: int, amount: int) -> int:
    """Base-asset value of `amount` tokens at fixed-point `price`."""
    require_non_negative("amount", amount)
    return tdiv(price * amount, PRECISION)
