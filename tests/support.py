"""Shared test doubles and record builders."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from gluon.core.errors import UpstreamUnavailable
from gluon.core.math import BUCKET_LEN, FIXED_BUFFER
from gluon.state.records import LedgerRecord, TokenAmount
from gluon.state.reserve import FeeState, OracleRecord, ReserveRecord, TokenPair

RESERVE_NFT = "aa" * 32
ORACLE_NFT = "bb" * 32
BUYBACK_NFT = "cc" * 32
STABLE_ID = "11" * 32
VOLATILE_ID = "22" * 32
ORACLE_POOL_TOKEN = "dd" * 32

RESERVE_SCRIPT = "10" * 40
ORACLE_SCRIPT = "20" * 40
BUYBACK_SCRIPT = "30" * 40
USER_SCRIPT = "0008cd" + "03" * 33
UI_SCRIPT = "0008cd" + "04" * 33
ORACLE_FEE_SCRIPT = BUYBACK_SCRIPT
DEV_TREE = bytes.fromhex("0008cd" + "02" * 33)

# 999 base units fissioned (in 1e9 sub-units), 500 of each token circulating.
FISSIONED = 999_000_000_000
CIRCULATING = 500_000_000_000
TOTAL_SUPPLY = 100_000_000_000_000_000
MAX_FEE = 1_000_000_000_000
PRICE_PER_KG = 60_000_000_000
ANCHOR = 720 * 1_000
HEIGHT = ANCHOR + 100


class FakeCodec:
    """Readable stand-in for the ledger constant codec."""

    def decode_long(self, encoded: str) -> int:
        return int(self._strip(encoded, "L"))

    def decode_long_coll(self, encoded: str) -> List[int]:
        body = self._strip(encoded, "C")
        return [int(v) for v in body.split(",")] if body else []

    def decode_long_pair(self, encoded: str) -> Tuple[int, int]:
        first, second = self._strip(encoded, "P").split(",")
        return int(first), int(second)

    def decode_byte_coll(self, encoded: str) -> bytes:
        return bytes.fromhex(self._strip(encoded, "B"))

    def encode_long(self, value: int) -> str:
        return f"L{value}"

    def encode_long_coll(self, values: Sequence[int]) -> str:
        return "C" + ",".join(str(v) for v in values)

    def encode_long_pair(self, first: int, second: int) -> str:
        return f"P{first},{second}"

    def encode_byte_coll(self, data: bytes) -> str:
        return "B" + data.hex()

    def script_to_address(self, script: str) -> str:
        return "addr:" + script[:16]

    @staticmethod
    def _strip(encoded: str, tag: str) -> str:
        if not encoded.startswith(tag):
            raise ValueError(f"expected {tag!r} constant, got {encoded!r}")
        return encoded[1:]


class FakeGateway:
    """In-memory LedgerGateway; `fail` makes every call raise UpstreamUnavailable."""

    def __init__(self, records: Optional[Dict[str, List[LedgerRecord]]] = None, height: int = HEIGHT) -> None:
        self.records = records or {}
        self.height = height
        self.fail = False
        self.calls: List[str] = []

    async def get_unspent_records_by_asset_id(self, asset_id: str) -> List[LedgerRecord]:
        self.calls.append(f"unspent:{asset_id}")
        if self.fail:
            raise UpstreamUnavailable("gateway down")
        return list(self.records.get(asset_id, []))

    async def get_record_by_id(self, record_id: str) -> LedgerRecord:
        self.calls.append(f"byId:{record_id}")
        if self.fail:
            raise UpstreamUnavailable("gateway down")
        for records in self.records.values():
            for record in records:
                if record.record_id == record_id:
                    return record
        raise UpstreamUnavailable(f"unknown record {record_id}")

    async def get_network_height(self) -> int:
        self.calls.append("height")
        if self.fail:
            raise UpstreamUnavailable("gateway down")
        return self.height


def zero_buckets() -> Tuple[int, ...]:
    return (0,) * BUCKET_LEN


def make_reserve_ledger_record(
    *,
    fissioned: int = FISSIONED,
    circulating_stable: int = CIRCULATING,
    circulating_volatile: int = CIRCULATING,
    repaid_fee: int = 0,
    max_fee: int = MAX_FEE,
    to_stable: Sequence[int] = zero_buckets(),
    to_volatile: Sequence[int] = zero_buckets(),
    anchor: int = ANCHOR,
    creation_height: int = ANCHOR - 50,
    codec: Optional[FakeCodec] = None,
) -> LedgerRecord:
    codec = codec or FakeCodec()
    return LedgerRecord(
        record_id="e1" * 32,
        value=fissioned + FIXED_BUFFER,
        spending_script=RESERVE_SCRIPT,
        assets=(
            TokenAmount(RESERVE_NFT, 1),
            TokenAmount(STABLE_ID, TOTAL_SUPPLY - circulating_stable),
            TokenAmount(VOLATILE_ID, TOTAL_SUPPLY - circulating_volatile),
        ),
        registers={
            "R4": codec.encode_long_coll([TOTAL_SUPPLY, TOTAL_SUPPLY]),
            "R5": codec.encode_byte_coll(DEV_TREE),
            "R6": codec.encode_long_pair(repaid_fee, max_fee),
            "R7": codec.encode_long_coll(to_stable),
            "R8": codec.encode_long_coll(to_volatile),
            "R9": codec.encode_long(anchor),
        },
        creation_height=creation_height,
        transaction_id="f1" * 32,
        index=0,
    )


def make_oracle_ledger_record(price_per_kg: int = PRICE_PER_KG, codec: Optional[FakeCodec] = None) -> LedgerRecord:
    codec = codec or FakeCodec()
    return LedgerRecord(
        record_id="e2" * 32,
        value=5_000_000,
        spending_script=ORACLE_SCRIPT,
        assets=(TokenAmount(ORACLE_NFT, 1), TokenAmount(ORACLE_POOL_TOKEN, 40_000)),
        registers={"R4": codec.encode_long(price_per_kg), "R5": codec.encode_long(ANCHOR)},
        creation_height=ANCHOR - 10,
    )


def make_buyback_ledger_record() -> LedgerRecord:
    return LedgerRecord(
        record_id="e3" * 32,
        value=2_000_000,
        spending_script=BUYBACK_SCRIPT,
        assets=(TokenAmount(BUYBACK_NFT, 1),),
        creation_height=ANCHOR - 200,
    )


def make_user_record(
    value: int = 10_000_000_000,
    stable: int = 2_000_000_000,
    volatile: int = 2_000_000_000,
    record_id: str = "e4" * 32,
    creation_height: int = ANCHOR + 50,
) -> LedgerRecord:
    assets = []
    if stable:
        assets.append(TokenAmount(STABLE_ID, stable))
    if volatile:
        assets.append(TokenAmount(VOLATILE_ID, volatile))
    return LedgerRecord(
        record_id=record_id,
        value=value,
        spending_script=USER_SCRIPT,
        assets=tuple(assets),
        creation_height=creation_height,
    )


def make_reserve(
    *,
    fissioned: int = FISSIONED,
    circulating_stable: int = CIRCULATING,
    circulating_volatile: int = CIRCULATING,
    repaid_fee: int = 0,
    max_fee: int = MAX_FEE,
    to_stable: Sequence[int] = zero_buckets(),
    to_volatile: Sequence[int] = zero_buckets(),
    anchor: int = ANCHOR,
) -> ReserveRecord:
    """A reserve value built directly, without a source ledger record."""
    return ReserveRecord(
        value=fissioned + FIXED_BUFFER,
        token_balances=TokenPair(
            stable=TOTAL_SUPPLY - circulating_stable,
            volatile=TOTAL_SUPPLY - circulating_volatile,
        ),
        total_supply=TokenPair(stable=TOTAL_SUPPLY, volatile=TOTAL_SUPPLY),
        fee_state=FeeState(repaid_fee=repaid_fee, max_fee=max_fee),
        dev_script_commitment=DEV_TREE,
        volume_to_stable=tuple(to_stable),
        volume_to_volatile=tuple(to_volatile),
        last_epoch_anchor_height=anchor,
        spending_script=RESERVE_SCRIPT,
        stable_token_id=STABLE_ID,
        volatile_token_id=VOLATILE_ID,
    )


def make_oracle(price_per_kg: int = PRICE_PER_KG) -> OracleRecord:
    return OracleRecord(price_per_kg=price_per_kg)
