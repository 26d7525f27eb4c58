from __future__ import annotations

import pytest
import hypothesis.strategies as st
from hypothesis import given

from gluon.core.fees import (
    FeeKind,
    FeeSchedule,
    Operation,
    decay_dev_fee,
    dev_fee,
    fee_breakdown,
    fee_outputs,
    nominal_fee,
)
from gluon.state.reserve import FeeState

from tests.support import DEV_TREE, MAX_FEE, ORACLE_FEE_SCRIPT, UI_SCRIPT, make_reserve

ERG = 1_000_000_000
RENT = 1_000_000


def _schedule(**overrides) -> FeeSchedule:
    params = dict(
        dev_fee=300,
        ui_fee=200,
        oracle_fee=100,
        ui_fee_script=UI_SCRIPT,
        oracle_fee_script=ORACLE_FEE_SCRIPT,
        min_box_rent=RENT,
    )
    params.update(overrides)
    return FeeSchedule(**params)


def test_nominal_fee_per_1e5() -> None:
    assert nominal_fee(300, ERG) == 3_000_000
    assert nominal_fee(1, 99_999) == 0


def test_dev_fee_decays_linearly_with_repaid_share() -> None:
    schedule = _schedule()
    assert dev_fee(ERG, make_reserve(repaid_fee=0), schedule) == 3_000_000
    assert dev_fee(ERG, make_reserve(repaid_fee=MAX_FEE // 2), schedule) == 1_500_000
    assert dev_fee(ERG, make_reserve(repaid_fee=MAX_FEE), schedule) == 0


def test_dev_fee_is_zero_once_cap_is_exceeded() -> None:
    assert decay_dev_fee(3_000_000, FeeState(repaid_fee=MAX_FEE + 5, max_fee=MAX_FEE)) == 0


@given(
    nominal=st.integers(min_value=0, max_value=10**15),
    max_fee=st.integers(min_value=1, max_value=10**15),
    a=st.integers(min_value=0, max_value=10**15),
    b=st.integers(min_value=0, max_value=10**15),
)
def test_dev_fee_is_non_increasing_in_repaid_fee(nominal: int, max_fee: int, a: int, b: int) -> None:
    lo, hi = sorted((min(a, max_fee), min(b, max_fee)))
    fee_lo = decay_dev_fee(nominal, FeeState(repaid_fee=lo, max_fee=max_fee))
    fee_hi = decay_dev_fee(nominal, FeeState(repaid_fee=hi, max_fee=max_fee))
    assert 0 <= fee_hi <= fee_lo <= nominal
    assert decay_dev_fee(nominal, FeeState(repaid_fee=max_fee, max_fee=max_fee)) == 0


def test_fee_outputs_for_fission_skip_oracle_fee() -> None:
    outputs = fee_outputs(ERG, make_reserve(), _schedule(), Operation.FISSION)
    assert [o.kind for o in outputs] == [FeeKind.DEV, FeeKind.UI]
    assert outputs[0].destination_script == DEV_TREE.hex()
    assert outputs[0].amount == 3_000_000 + RENT
    assert outputs[1].destination_script == UI_SCRIPT
    assert outputs[1].amount == 2_000_000 + RENT


def test_fee_outputs_for_transmutation_include_oracle_fee() -> None:
    outputs = fee_outputs(ERG, make_reserve(), _schedule(), Operation.TRANSMUTE_TO_STABLE)
    assert [o.kind for o in outputs] == [FeeKind.DEV, FeeKind.UI, FeeKind.ORACLE]
    assert outputs[2].amount == 1_000_000 + RENT


def test_fee_outputs_drop_zero_rate_components() -> None:
    schedule = _schedule(ui_fee=0, oracle_fee=0)
    outputs = fee_outputs(ERG, make_reserve(), schedule, Operation.TRANSMUTE_FROM_STABLE)
    assert [o.kind for o in outputs] == [FeeKind.DEV]


def test_dev_output_keeps_rent_when_fee_fully_repaid() -> None:
    outputs = fee_outputs(ERG, make_reserve(repaid_fee=MAX_FEE), _schedule(), Operation.FUSION)
    assert outputs[0].kind is FeeKind.DEV
    assert outputs[0].amount == RENT


def test_fee_breakdown_and_percentages() -> None:
    breakdown = fee_breakdown(ERG, make_reserve(), _schedule(), Operation.FISSION)
    assert breakdown.oracle == 0
    assert breakdown.total == breakdown.dev + breakdown.ui == 7_000_000
    pct = breakdown.percentages(ERG)
    assert pct["total"] == pytest.approx(0.007)
    assert pct["oracle"] == 0


def test_schedule_requires_destination_for_enabled_fee() -> None:
    with pytest.raises(ValueError):
        FeeSchedule(dev_fee=300, ui_fee=10)
    with pytest.raises(ValueError):
        FeeSchedule(dev_fee=100_001)
