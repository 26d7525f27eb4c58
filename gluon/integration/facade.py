"""
Protocol facade: quotes and unsigned transactions for the reserve protocol.

The facade wires the pure kernels (`gluon.core`) to the record views
(`gluon.state`) and the assembler. The only I/O goes through the injected
`LedgerGateway`, and only in the `fetch_*` helpers; every quote or plan method
works on a `Snapshot` supplied by the caller. The reserve and oracle records of
one snapshot must come from the same ledger state; the facade does not check
freshness and does not cache anything between calls.

Transaction layout (all operations):
- inputs: reserve record, user records[, buyback record]
- data inputs: oracle record
- outputs: successor reserve, change[, buyback + oracle fee], dev fee[, UI fee], miner fee
Change goes to the spending script of the first user record.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..core import exchange as ex
from ..core.errors import UpstreamUnavailable
from ..core.fees import FeeBreakdown, FeeKind, Operation, fee_breakdown
from ..core.ratio import base_volume, stable_price, volatile_price
from ..state.codec import ChainCodec
from ..state.records import LedgerRecord, OutputCandidate
from ..state.reserve import OracleRecord, ReserveRecord, TokenPair, decode_oracle, decode_reserve, to_output
from .assembler import TransactionPlan, build_transaction, compute_change
from .config import GluonConfig
from .gateway import LedgerGateway, NodeGateway, NodeHttpConfig
from .wallet import TRANSMUTE_SELECTOR_EXTENSION, to_wallet_form

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Records read from one ledger state."""

    reserve: ReserveRecord
    oracle: OracleRecord
    buyback: Optional[LedgerRecord] = None
    height: Optional[int] = None


class ProtocolFacade:
    def __init__(self, config: GluonConfig, gateway: LedgerGateway, codec: ChainCodec) -> None:
        self.config = config.validate(require_node=False)
        self.gateway = gateway
        self.codec = codec
        self.schedule = config.fee_schedule()

    @classmethod
    def from_config(cls, config: GluonConfig, codec: ChainCodec) -> "ProtocolFacade":
        """Build a facade talking to `config.node_url`."""
        config.validate()
        return cls(config, NodeGateway(NodeHttpConfig(url=config.node_url)), codec)

    # ------------------------------------------------------------------
    # Record decoding and fetching
    # ------------------------------------------------------------------

    def decode_reserve(self, record: LedgerRecord) -> ReserveRecord:
        return decode_reserve(
            record,
            self.codec,
            stable_token_id=self.config.stable_token_id,
            volatile_token_id=self.config.volatile_token_id,
        )

    def decode_oracle(self, record: LedgerRecord) -> OracleRecord:
        return decode_oracle(record, self.codec)

    def snapshot_from_records(
        self,
        reserve: LedgerRecord,
        oracle: LedgerRecord,
        buyback: Optional[LedgerRecord] = None,
        height: Optional[int] = None,
    ) -> Snapshot:
        return Snapshot(
            reserve=self.decode_reserve(reserve),
            oracle=self.decode_oracle(oracle),
            buyback=buyback,
            height=height,
        )

    async def _singleton(self, asset_id: str, label: str) -> LedgerRecord:
        records = await self.gateway.get_unspent_records_by_asset_id(asset_id)
        if not records:
            raise UpstreamUnavailable(f"no unspent {label} record holds {asset_id}")
        return records[0]

    async def fetch_reserve(self) -> ReserveRecord:
        return self.decode_reserve(await self._singleton(self.config.reserve_nft, "reserve"))

    async def fetch_oracle(self) -> OracleRecord:
        return self.decode_oracle(await self._singleton(self.config.oracle_nft, "oracle"))

    async def fetch_buyback(self) -> LedgerRecord:
        return await self._singleton(self.config.buyback_nft, "buyback")

    async def network_height(self) -> int:
        return await self.gateway.get_network_height()

    async def fetch_snapshot(self, *, with_buyback: bool = False, with_height: bool = False) -> Snapshot:
        """Fetch the records needed for one operation concurrently."""
        lookups: List[Any] = [
            self._singleton(self.config.reserve_nft, "reserve"),
            self._singleton(self.config.oracle_nft, "oracle"),
        ]
        if with_buyback:
            lookups.append(self.fetch_buyback())
        if with_height:
            lookups.append(self.network_height())
        results = await asyncio.gather(*lookups)
        reserve, oracle = results[0], results[1]
        buyback = results[2] if with_buyback else None
        height = results[-1] if with_height else None
        logger.debug("fetched snapshot: reserve=%s oracle=%s height=%s", reserve.record_id, oracle.record_id, height)
        return self.snapshot_from_records(reserve, oracle, buyback, height)

    # ------------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------------

    def fission_will_get(self, snapshot: Snapshot, erg_to_fission: int) -> TokenPair:
        return ex.fission(snapshot.reserve, erg_to_fission)

    def fusion_will_need(self, snapshot: Snapshot, erg_to_redeem: int) -> TokenPair:
        return ex.fusion(snapshot.reserve, erg_to_redeem)

    def transmute_to_stable_will_get(self, snapshot: Snapshot, volatile_in: int, height: Optional[int] = None) -> int:
        h = self._height(snapshot, height)
        return ex.transmute_to_stable(
            snapshot.reserve, snapshot.oracle, volatile_in, h, self.config.blocks_per_day
        ).amount_out

    def transmute_from_stable_will_get(self, snapshot: Snapshot, stable_in: int, height: Optional[int] = None) -> int:
        h = self._height(snapshot, height)
        return ex.transmute_from_stable(
            snapshot.reserve, snapshot.oracle, stable_in, h, self.config.blocks_per_day
        ).amount_out

    def operation_volume(self, snapshot: Snapshot, operation: Operation, amount: int) -> int:
        """Base-asset volume an operation is charged on.

        `amount` is in base units for fission/fusion and in input tokens for transmutations.
        """
        if operation is Operation.TRANSMUTE_TO_STABLE:
            return base_volume(volatile_price(snapshot.reserve, snapshot.oracle), amount)
        if operation is Operation.TRANSMUTE_FROM_STABLE:
            return base_volume(stable_price(snapshot.reserve, snapshot.oracle), amount)
        return amount

    def fee_amounts(self, snapshot: Snapshot, operation: Operation, amount: int) -> FeeBreakdown:
        volume = self.operation_volume(snapshot, operation, amount)
        return fee_breakdown(volume, snapshot.reserve, self.schedule, operation)

    def fee_percentages(self, snapshot: Snapshot, operation: Operation, amount: int) -> Dict[str, float]:
        volume = self.operation_volume(snapshot, operation, amount)
        return fee_breakdown(volume, snapshot.reserve, self.schedule, operation).percentages(volume)

    def dev_fee_address(self, snapshot: Snapshot) -> str:
        """Address the dev fee of every operation is paid to."""
        return self.codec.script_to_address(snapshot.reserve.dev_script)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def fission(self, snapshot: Snapshot, user_records: Sequence[LedgerRecord], erg_to_fission: int) -> TransactionPlan:
        exchange = ex.fission_exchange(snapshot.reserve, erg_to_fission, self.schedule)
        return self._assemble(snapshot, exchange, user_records)

    def fusion(self, snapshot: Snapshot, user_records: Sequence[LedgerRecord], erg_to_redeem: int) -> TransactionPlan:
        exchange = ex.fusion_exchange(snapshot.reserve, erg_to_redeem, self.schedule)
        return self._assemble(snapshot, exchange, user_records)

    def transmute_to_stable(
        self,
        snapshot: Snapshot,
        user_records: Sequence[LedgerRecord],
        volatile_in: int,
        height: Optional[int] = None,
    ) -> TransactionPlan:
        h = self._height(snapshot, height)
        exchange = ex.transmute_to_stable_exchange(
            snapshot.reserve, snapshot.oracle, volatile_in, h, self.schedule, self.config.blocks_per_day
        )
        return self._assemble(snapshot, exchange, user_records, height=h)

    def transmute_from_stable(
        self,
        snapshot: Snapshot,
        user_records: Sequence[LedgerRecord],
        stable_in: int,
        height: Optional[int] = None,
    ) -> TransactionPlan:
        h = self._height(snapshot, height)
        exchange = ex.transmute_from_stable_exchange(
            snapshot.reserve, snapshot.oracle, stable_in, h, self.schedule, self.config.blocks_per_day
        )
        return self._assemble(snapshot, exchange, user_records, height=h)

    def fission_for_wallet(self, snapshot: Snapshot, user_records: Sequence[LedgerRecord], erg_to_fission: int) -> Dict[str, Any]:
        return to_wallet_form(self.fission(snapshot, user_records, erg_to_fission))

    def fusion_for_wallet(self, snapshot: Snapshot, user_records: Sequence[LedgerRecord], erg_to_redeem: int) -> Dict[str, Any]:
        return to_wallet_form(self.fusion(snapshot, user_records, erg_to_redeem))

    def transmute_to_stable_for_wallet(
        self, snapshot: Snapshot, user_records: Sequence[LedgerRecord], volatile_in: int, height: Optional[int] = None
    ) -> Dict[str, Any]:
        return to_wallet_form(self.transmute_to_stable(snapshot, user_records, volatile_in, height))

    def transmute_from_stable_for_wallet(
        self, snapshot: Snapshot, user_records: Sequence[LedgerRecord], stable_in: int, height: Optional[int] = None
    ) -> Dict[str, Any]:
        return to_wallet_form(self.transmute_from_stable(snapshot, user_records, stable_in, height))

    # ------------------------------------------------------------------

    @staticmethod
    def _height(snapshot: Snapshot, height: Optional[int]) -> int:
        h = height if height is not None else snapshot.height
        if h is None:
            raise ValueError("transmutation needs the current network height")
        return h

    def _assemble(
        self,
        snapshot: Snapshot,
        exchange: ex.Exchange,
        user_records: Sequence[LedgerRecord],
        height: Optional[int] = None,
    ) -> TransactionPlan:
        if not user_records:
            raise ValueError("at least one user record is required")
        reserve_in = snapshot.reserve.source
        oracle_in = snapshot.oracle.source
        if reserve_in is None or oracle_in is None:
            raise ValueError("snapshot records must be decoded from ledger records")

        inputs: List[LedgerRecord] = [reserve_in, *user_records]
        extensions: Dict[int, Any] = {}
        reserve_out = to_output(exchange.successor, self.codec)

        fee_outs = [
            OutputCandidate(value=spec.amount, spending_script=spec.destination_script)
            for spec in exchange.fees
            if not (spec.kind is FeeKind.ORACLE and exchange.operation.requires_oracle_fee)
        ]
        buyback_outs: List[OutputCandidate] = []
        if exchange.operation.requires_oracle_fee:
            buyback = snapshot.buyback
            if buyback is None:
                raise ValueError("transmutation requires the buyback record in the snapshot")
            oracle_fee = sum(spec.amount for spec in exchange.fees if spec.kind is FeeKind.ORACLE)
            buyback_outs.append(
                OutputCandidate(
                    value=buyback.value + oracle_fee,
                    spending_script=buyback.spending_script,
                    assets=buyback.assets,
                    registers=buyback.registers,
                )
            )
            inputs.append(buyback)
            extensions[len(inputs) - 1] = TRANSMUTE_SELECTOR_EXTENSION

        change = compute_change(
            inputs,
            [reserve_out, *buyback_outs, *fee_outs],
            user_records[0].spending_script,
            self.config.miner_fee,
        )
        plan = build_transaction(
            inputs,
            [reserve_out, change, *buyback_outs, *fee_outs],
            [oracle_in],
            self.config.miner_fee,
            reference_height=height,
            input_extensions=extensions,
        )
        logger.debug(
            "%s plan: volume=%d stable_to_user=%d volatile_to_user=%d dev_fee=%d outputs=%d",
            exchange.operation.value,
            exchange.base_volume,
            exchange.stable_to_user,
            exchange.volatile_to_user,
            exchange.dev_fee,
            len(plan.outputs),
        )
        return plan
