"""
Wallet presentation form of a `TransactionPlan` (EIP-12 style JSON).

Wallets need the full input and data-input records rather than bare ids, so the
plan's records are re-attached here. Every entry gets an `extension` field;
inputs keep the context extension set during assembly, everything else gets an
empty placeholder. Amounts are rendered as decimal strings.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ..state.records import LedgerRecord, OutputCandidate, TokenAmount
from .assembler import TransactionPlan

# Context extension attached to the buyback input of transmutations: variable 0
# holds the action selector the buyback contract expects.
TRANSMUTE_SELECTOR_EXTENSION: Mapping[str, str] = {"0": "0402"}


def _assets(assets: tuple[TokenAmount, ...]) -> List[Dict[str, str]]:
    return [{"tokenId": a.token_id, "amount": str(a.amount)} for a in assets]


def _record(record: LedgerRecord, extension: Mapping[str, str]) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "boxId": record.record_id,
        "value": str(record.value),
        "ergoTree": record.spending_script,
        "assets": _assets(record.assets),
        "additionalRegisters": dict(record.registers),
        "creationHeight": record.creation_height,
        "extension": dict(extension),
    }
    if record.transaction_id is not None:
        out["transactionId"] = record.transaction_id
    if record.index is not None:
        out["index"] = record.index
    return out


def _output(output: OutputCandidate) -> Dict[str, Any]:
    return {
        "value": str(output.value),
        "ergoTree": output.spending_script,
        "assets": _assets(output.assets),
        "additionalRegisters": dict(output.registers),
        "creationHeight": output.creation_height,
        "extension": {},
    }


def to_wallet_form(plan: TransactionPlan) -> Dict[str, Any]:
    return {
        "inputs": [_record(r, plan.input_extensions.get(i, {})) for i, r in enumerate(plan.inputs)],
        "dataInputs": [_record(r, {}) for r in plan.data_inputs],
        "outputs": [_output(o) for o in plan.outputs],
    }
