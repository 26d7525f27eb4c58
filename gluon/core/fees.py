"""
Protocol fee kernels (deterministic, integer-only).

Fee rates are expressed per `FEE_DENOM` (1e5) of the traded base volume. The
dev fee decays linearly to zero as the reserve's repaid dev fee approaches its
cap; every fee output also carries the minimum record rent.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

from .math import FEE_DENOM, mul_div, require_non_negative

if TYPE_CHECKING:
    from ..state.reserve import FeeState, ReserveRecord


DEFAULT_MIN_BOX_RENT = 1_000_000


class Operation(str, Enum):
    FISSION = "fission"
    FUSION = "fusion"
    TRANSMUTE_TO_STABLE = "transmute_to_stable"
    TRANSMUTE_FROM_STABLE = "transmute_from_stable"

    @property
    def requires_oracle_fee(self) -> bool:
        return self in (Operation.TRANSMUTE_TO_STABLE, Operation.TRANSMUTE_FROM_STABLE)


class FeeKind(str, Enum):
    DEV = "dev"
    UI = "ui"
    ORACLE = "oracle"


@dataclass(frozen=True)
class FeeSchedule:
    dev_fee: int
    ui_fee: int = 0
    oracle_fee: int = 0
    ui_fee_script: str = ""
    oracle_fee_script: str = ""
    min_box_rent: int = DEFAULT_MIN_BOX_RENT

    def __post_init__(self) -> None:
        for name, v in (
            ("dev_fee", self.dev_fee),
            ("ui_fee", self.ui_fee),
            ("oracle_fee", self.oracle_fee),
            ("min_box_rent", self.min_box_rent),
        ):
            require_non_negative(name, v)
            if name != "min_box_rent" and v > FEE_DENOM:
                raise ValueError(f"{name} must be in [0, {FEE_DENOM}]: {v}")
        if self.ui_fee > 0 and not self.ui_fee_script:
            raise ValueError("ui_fee_script is required when ui_fee > 0")
        if self.oracle_fee > 0 and not self.oracle_fee_script:
            raise ValueError("oracle_fee_script is required when oracle_fee > 0")


@dataclass(frozen=True)
class FeeOutputSpec:
    kind: FeeKind
    destination_script: str
    amount: int

    def __post_init__(self) -> None:
        require_non_negative("amount", self.amount)


@dataclass(frozen=True)
class FeeBreakdown:
    dev: int
    ui: int
    oracle: int

    @property
    def total(self) -> int:
        return self.dev + self.ui + self.oracle

    def percentages(self, base_volume: int) -> Dict[str, float]:
        """Each component (and the total) as a fraction of `base_volume`."""
        if base_volume <= 0:
            raise ValueError(f"base_volume must be positive: {base_volume}")
        return {
            "dev": self.dev / base_volume,
            "ui": self.ui / base_volume,
            "oracle": self.oracle / base_volume,
            "total": self.total / base_volume,
        }


def nominal_fee(rate: int, erg_val: int) -> int:
    """``rate * erg_val / 1e5``."""
    require_non_negative("erg_val", erg_val)
    return mul_div(rate, erg_val, FEE_DENOM)


def decay_dev_fee(nominal: int, fee_state: "FeeState") -> int:
    """Scale `nominal` by the unrepaid share of the dev-fee cap."""
    remaining = max(0, fee_state.max_fee - fee_state.repaid_fee)
    return mul_div(nominal, remaining, fee_state.max_fee)


def dev_fee(erg_val: int, reserve: "ReserveRecord", schedule: FeeSchedule) -> int:
    return decay_dev_fee(nominal_fee(schedule.dev_fee, erg_val), reserve.fee_state)


def fee_outputs(
    erg_val: int,
    reserve: "ReserveRecord",
    schedule: FeeSchedule,
    operation: Optional[Operation] = None,
) -> List[FeeOutputSpec]:
    """
    Ordered fee outputs for an operation moving `erg_val` base units.

    The dev output is always present; UI and oracle outputs only when their rate
    is non-zero, and the oracle output only for operations that read the oracle
    fee (transmutations). With `operation=None` the oracle output is included.
    """
    outputs = [
        FeeOutputSpec(
            kind=FeeKind.DEV,
            destination_script=reserve.dev_script,
            amount=dev_fee(erg_val, reserve, schedule) + schedule.min_box_rent,
        )
    ]
    if schedule.ui_fee > 0:
        outputs.append(
            FeeOutputSpec(
                kind=FeeKind.UI,
                destination_script=schedule.ui_fee_script,
                amount=nominal_fee(schedule.ui_fee, erg_val) + schedule.min_box_rent,
            )
        )
    with_oracle = operation is None or operation.requires_oracle_fee
    if schedule.oracle_fee > 0 and with_oracle:
        outputs.append(
            FeeOutputSpec(
                kind=FeeKind.ORACLE,
                destination_script=schedule.oracle_fee_script,
                amount=nominal_fee(schedule.oracle_fee, erg_val) + schedule.min_box_rent,
            )
        )
    return outputs


def fee_breakdown(
    erg_val: int,
    reserve: "ReserveRecord",
    schedule: FeeSchedule,
    operation: Operation,
) -> FeeBreakdown:
    """Total amount routed to each fee destination (rent included)."""
    amounts = {kind: 0 for kind in FeeKind}
    for spec in fee_outputs(erg_val, reserve, schedule, operation):
        amounts[spec.kind] += spec.amount
    return FeeBreakdown(dev=amounts[FeeKind.DEV], ui=amounts[FeeKind.UI], oracle=amounts[FeeKind.ORACLE])
