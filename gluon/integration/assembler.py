"""
Balanced multi-asset transaction assembly.

`compute_change()` derives the single change output that makes a set of
inputs and planned outputs balance, and fails before anything is built when
the inputs cannot cover the outputs. `build_transaction()` stamps creation
heights, appends the miner-fee output and returns an unsigned plan. Signing
happens outside the engine.

Conservation (checked by `check_conservation()`):
    sum(input.value) == sum(output.value) + miner_fee
    sum(input.amount(t)) == sum(output.amount(t))   for every token t
where `output` ranges over every output except the miner-fee one.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional, Sequence, Tuple

from ..core.errors import InsufficientFunds
from ..core.math import require_positive
from ..state.records import LedgerRecord, OutputCandidate, TokenAmount, asset_totals, value_total

# Standard miner-fee proposition of the ledger.
MINER_FEE_SCRIPT = (
    "1005040004000e36100204a00b08cd0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
    "ea02d192a39a8cc7a701730073011001020402d19683030193a38cc7b2a57300000193c2b2a57301007473027303830108"
    "cdeeac93b1a57304"
)


@dataclass(frozen=True)
class TransactionPlan:
    """Unsigned transaction. `outputs` ends with the miner-fee output."""

    inputs: Tuple[LedgerRecord, ...]
    outputs: Tuple[OutputCandidate, ...]
    data_inputs: Tuple[LedgerRecord, ...]
    miner_fee: int
    reference_height: int
    input_extensions: Mapping[int, Mapping[str, str]] = field(default_factory=dict)

    @property
    def payload_outputs(self) -> Tuple[OutputCandidate, ...]:
        """All outputs except the trailing miner-fee output."""
        return self.outputs[:-1]

    @property
    def fee_output(self) -> OutputCandidate:
        return self.outputs[-1]


def compute_change(
    inputs: Sequence[LedgerRecord],
    outputs: Sequence[OutputCandidate],
    change_script: str,
    miner_fee: int,
) -> OutputCandidate:
    """
    Change output returning everything the planned `outputs` and fee do not consume.

    Only strictly positive token remainders are kept, sorted by token id.

    Raises:
        InsufficientFunds: if the base value or any token remainder is negative.
    """
    value = value_total(inputs) - value_total(outputs) - miner_fee
    totals_in = asset_totals(inputs)
    totals_out = asset_totals(outputs)

    remainders: Dict[str, int] = {}
    for token_id in set(totals_in) | set(totals_out):
        remainders[token_id] = totals_in.get(token_id, 0) - totals_out.get(token_id, 0)

    shortfalls = {t: -amount for t, amount in remainders.items() if amount < 0}
    if value < 0 or shortfalls:
        raise InsufficientFunds(value_shortfall=max(0, -value), asset_shortfalls=shortfalls)

    assets = tuple(TokenAmount(t, remainders[t]) for t in sorted(remainders) if remainders[t] > 0)
    return OutputCandidate(value=value, spending_script=change_script, assets=assets)


def miner_fee_output(miner_fee: int, height: int) -> OutputCandidate:
    return OutputCandidate(value=miner_fee, spending_script=MINER_FEE_SCRIPT, creation_height=height)


def build_transaction(
    inputs: Sequence[LedgerRecord],
    outputs: Sequence[OutputCandidate],
    data_inputs: Sequence[LedgerRecord],
    miner_fee: int,
    reference_height: Optional[int] = None,
    input_extensions: Optional[Mapping[int, Mapping[str, str]]] = None,
) -> TransactionPlan:
    """
    Assemble an unsigned plan.

    New outputs are stamped with `reference_height` when given, otherwise with
    the highest creation height among the inputs. Operations whose scripts are
    anchored to the current height (transmutations) must pass it explicitly.
    """
    if not inputs:
        raise ValueError("a transaction needs at least one input")
    require_positive("miner_fee", miner_fee)
    height = reference_height if reference_height is not None else max(i.creation_height for i in inputs)

    stamped = tuple(replace(o, creation_height=height) for o in outputs)
    plan = TransactionPlan(
        inputs=tuple(inputs),
        outputs=stamped + (miner_fee_output(miner_fee, height),),
        data_inputs=tuple(data_inputs),
        miner_fee=miner_fee,
        reference_height=height,
        input_extensions={int(k): dict(v) for k, v in (input_extensions or {}).items()},
    )
    check_conservation(plan)
    return plan


def check_conservation(plan: TransactionPlan) -> None:
    """Raise InsufficientFunds if the plan does not balance value and every token."""
    value_gap = value_total(plan.inputs) - value_total(plan.payload_outputs) - plan.miner_fee
    totals_in = asset_totals(plan.inputs)
    totals_out = asset_totals(plan.outputs)
    short = {
        t: totals_out.get(t, 0) - totals_in.get(t, 0)
        for t in set(totals_in) | set(totals_out)
        if totals_out.get(t, 0) > totals_in.get(t, 0)
    }
    if value_gap < 0 or short:
        raise InsufficientFunds(value_shortfall=max(0, -value_gap), asset_shortfalls=short)
    surplus = [t for t in totals_in if totals_in[t] > totals_out.get(t, 0)]
    if value_gap > 0 or surplus:
        raise ValueError(
            f"unbalanced plan: {value_gap} base units and tokens {sorted(surplus)} are not assigned to any output"
        )
