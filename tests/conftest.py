from __future__ import annotations

import pytest

from gluon.integration.config import GluonConfig
from gluon.integration.facade import ProtocolFacade, Snapshot

from tests.support import (
    BUYBACK_NFT,
    HEIGHT,
    ORACLE_FEE_SCRIPT,
    ORACLE_NFT,
    RESERVE_NFT,
    STABLE_ID,
    UI_SCRIPT,
    VOLATILE_ID,
    FakeCodec,
    FakeGateway,
    make_buyback_ledger_record,
    make_oracle_ledger_record,
    make_reserve_ledger_record,
    make_user_record,
)


# -----------------------------
# Pytest fixtures
# -----------------------------


@pytest.fixture()
def codec() -> FakeCodec:
    return FakeCodec()


@pytest.fixture()
def config() -> GluonConfig:
    return GluonConfig(
        node_url="http://127.0.0.1:9053",
        reserve_nft=RESERVE_NFT,
        oracle_nft=ORACLE_NFT,
        buyback_nft=BUYBACK_NFT,
        stable_token_id=STABLE_ID,
        volatile_token_id=VOLATILE_ID,
        dev_fee=500,
        ui_fee=200,
        oracle_fee=100,
        ui_fee_script=UI_SCRIPT,
        oracle_fee_script=ORACLE_FEE_SCRIPT,
    )


@pytest.fixture()
def gateway(codec: FakeCodec) -> FakeGateway:
    return FakeGateway(
        records={
            RESERVE_NFT: [make_reserve_ledger_record(codec=codec)],
            ORACLE_NFT: [make_oracle_ledger_record(codec=codec)],
            BUYBACK_NFT: [make_buyback_ledger_record()],
        },
        height=HEIGHT,
    )


@pytest.fixture()
def facade(config: GluonConfig, gateway: FakeGateway, codec: FakeCodec) -> ProtocolFacade:
    return ProtocolFacade(config, gateway, codec)


@pytest.fixture()
def snapshot(facade: ProtocolFacade, codec: FakeCodec) -> Snapshot:
    return facade.snapshot_from_records(
        make_reserve_ledger_record(codec=codec),
        make_oracle_ledger_record(codec=codec),
        make_buyback_ledger_record(),
        HEIGHT,
    )


@pytest.fixture()
def user_record():
    return make_user_record()
