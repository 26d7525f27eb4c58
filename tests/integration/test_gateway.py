from __future__ import annotations

import asyncio
import io
import json
import logging
import urllib.error

import pytest

from gluon.core.errors import ConfigurationError, UpstreamUnavailable
from gluon.integration.gateway import NodeGateway, NodeHttpConfig

from tests.support import RESERVE_NFT, make_reserve_ledger_record


class _FakeUrlopen:
    def __init__(self, body: bytes = b"", error: Exception | None = None) -> None:
        self.body = body
        self.error = error
        self.urls: list[str] = []

    def __call__(self, req, timeout=None):
        self.urls.append(req.full_url)
        if self.error is not None:
            raise self.error
        return io.BytesIO(self.body)


def _gateway(**kwargs) -> NodeGateway:
    return NodeGateway(NodeHttpConfig(url="http://node:9053/", **kwargs))


def _install(monkeypatch, fake: _FakeUrlopen) -> _FakeUrlopen:
    monkeypatch.setattr("urllib.request.urlopen", fake)
    return fake


def test_unspent_records_by_asset_id(monkeypatch) -> None:
    record = make_reserve_ledger_record()
    fake = _install(monkeypatch, _FakeUrlopen(json.dumps([record.to_json()]).encode()))
    records = asyncio.run(_gateway().get_unspent_records_by_asset_id(RESERVE_NFT))
    assert records == [record]
    assert fake.urls == [f"http://node:9053/blockchain/box/unspent/byTokenId/{RESERVE_NFT}"]


def test_record_by_id(monkeypatch) -> None:
    record = make_reserve_ledger_record()
    fake = _install(monkeypatch, _FakeUrlopen(json.dumps(record.to_json()).encode()))
    assert asyncio.run(_gateway().get_record_by_id(record.record_id)) == record
    assert fake.urls == [f"http://node:9053/utxo/byId/{record.record_id}"]


def test_network_height(monkeypatch) -> None:
    _install(monkeypatch, _FakeUrlopen(b'{"fullHeight": 1234567, "name": "node"}'))
    assert asyncio.run(_gateway().get_network_height()) == 1234567


def test_connection_error_is_upstream_unavailable(monkeypatch, caplog) -> None:
    _install(monkeypatch, _FakeUrlopen(error=urllib.error.URLError("refused")))
    with caplog.at_level(logging.WARNING, logger="gluon.integration.gateway"):
        with pytest.raises(UpstreamUnavailable):
            asyncio.run(_gateway().get_network_height())
    assert any("node request failed" in r.getMessage() for r in caplog.records)


@pytest.mark.parametrize(
    "body",
    [b"not json", b'{"boxId": 1}', b'[{"value": 1}]'],
)
def test_malformed_responses_are_upstream_unavailable(monkeypatch, body) -> None:
    _install(monkeypatch, _FakeUrlopen(body))
    with pytest.raises(UpstreamUnavailable):
        asyncio.run(_gateway().get_unspent_records_by_asset_id(RESERVE_NFT))


def test_missing_height_is_upstream_unavailable(monkeypatch) -> None:
    _install(monkeypatch, _FakeUrlopen(b"{}"))
    with pytest.raises(UpstreamUnavailable, match="fullHeight"):
        asyncio.run(_gateway().get_network_height())


def test_oversized_response_is_rejected(monkeypatch) -> None:
    _install(monkeypatch, _FakeUrlopen(b'{"fullHeight": 1}'))
    with pytest.raises(UpstreamUnavailable, match="exceeds"):
        asyncio.run(_gateway(recv_max_bytes=4).get_network_height())


@pytest.mark.parametrize("url", ["", "   ", "ftp://node", "node:9053"])
def test_node_config_requires_http_url(url) -> None:
    with pytest.raises(ConfigurationError):
        NodeHttpConfig(url=url)
