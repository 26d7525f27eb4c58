"""
Ledger gateway: the only place the engine touches the network.

`LedgerGateway` is the contract the facade depends on; tests inject an
in-memory double. `NodeGateway` implements it against a node's REST API using
the standard library HTTP client, run off the event loop so that lookups can be
issued concurrently. Failures surface as `UpstreamUnavailable`; nothing is
retried here.
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any, List, Protocol

from ..core.errors import ConfigurationError, RecordDecodeError, UpstreamUnavailable
from ..state.records import LedgerRecord

logger = logging.getLogger(__name__)


class LedgerGateway(Protocol):
    async def get_unspent_records_by_asset_id(self, asset_id: str) -> List[LedgerRecord]: ...

    async def get_record_by_id(self, record_id: str) -> LedgerRecord: ...

    async def get_network_height(self) -> int: ...


@dataclass(frozen=True)
class NodeHttpConfig:
    url: str
    timeout_s: float = 10.0
    recv_max_bytes: int = 8_388_608

    def __post_init__(self) -> None:
        if not self.url or not self.url.strip():
            raise ConfigurationError("node url is not set")
        parsed = urllib.parse.urlparse(self.url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(f"node url must be an http(s) URL: {self.url!r}")
        if self.timeout_s <= 0:
            raise ConfigurationError(f"timeout_s must be positive: {self.timeout_s}")


class NodeGateway:
    """Node REST client implementing `LedgerGateway`."""

    def __init__(self, config: NodeHttpConfig) -> None:
        self._config = config
        self._base = config.url.rstrip("/")

    def _get_json(self, path: str) -> Any:
        url = f"{self._base}/{path.lstrip('/')}"
        req = urllib.request.Request(url, headers={"Accept": "application/json"})
        try:
            with urllib.request.urlopen(req, timeout=self._config.timeout_s) as resp:
                raw = resp.read(self._config.recv_max_bytes + 1)
        except (urllib.error.URLError, OSError) as exc:
            logger.warning("node request failed: GET %s (%s)", url, exc)
            raise UpstreamUnavailable(f"GET {url} failed: {exc}") from exc
        if len(raw) > self._config.recv_max_bytes:
            raise UpstreamUnavailable(f"GET {url} response exceeds {self._config.recv_max_bytes} bytes")
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("node returned invalid JSON: GET %s", url)
            raise UpstreamUnavailable(f"GET {url} returned invalid JSON") from exc

    async def _fetch(self, path: str) -> Any:
        return await asyncio.to_thread(self._get_json, path)

    async def get_unspent_records_by_asset_id(self, asset_id: str) -> List[LedgerRecord]:
        data = await self._fetch(f"blockchain/box/unspent/byTokenId/{urllib.parse.quote(asset_id)}")
        if not isinstance(data, list):
            raise UpstreamUnavailable(f"unexpected response for token {asset_id}: expected a list")
        try:
            return [LedgerRecord.from_json(item) for item in data]
        except RecordDecodeError as exc:
            raise UpstreamUnavailable(f"node returned a malformed record for token {asset_id}") from exc

    async def get_record_by_id(self, record_id: str) -> LedgerRecord:
        data = await self._fetch(f"utxo/byId/{urllib.parse.quote(record_id)}")
        try:
            return LedgerRecord.from_json(data)
        except RecordDecodeError as exc:
            raise UpstreamUnavailable(f"node returned a malformed record {record_id}") from exc

    async def get_network_height(self) -> int:
        data = await self._fetch("info")
        try:
            return int(data["fullHeight"])
        except (KeyError, TypeError, ValueError) as exc:
            raise UpstreamUnavailable("node info has no fullHeight") from exc
