"""
Engine configuration.

Values come from a mapping, from `GLUON_*` environment variables, or from a
YAML file. Loading never touches the network; `validate()` is called by the
facade before any request is made.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from ..core.errors import ConfigurationError
from ..core.fees import DEFAULT_MIN_BOX_RENT, FeeSchedule
from ..core.math import BLOCKS_PER_DAY, FEE_DENOM

logger = logging.getLogger(__name__)

DEFAULT_MINER_FEE = 1_600_000

_REQUIRED_IDS = ("reserve_nft", "oracle_nft", "buyback_nft", "stable_token_id", "volatile_token_id")
_INT_FIELDS = ("dev_fee", "ui_fee", "oracle_fee", "min_box_rent", "miner_fee", "blocks_per_day")


@dataclass(frozen=True)
class GluonConfig:
    node_url: str = ""
    reserve_nft: str = ""
    oracle_nft: str = ""
    buyback_nft: str = ""
    stable_token_id: str = ""
    volatile_token_id: str = ""
    dev_fee: int = 0
    ui_fee: int = 0
    oracle_fee: int = 0
    ui_fee_script: str = ""
    oracle_fee_script: str = ""
    min_box_rent: int = DEFAULT_MIN_BOX_RENT
    miner_fee: int = DEFAULT_MINER_FEE
    blocks_per_day: int = BLOCKS_PER_DAY

    def validate(self, *, require_node: bool = True) -> "GluonConfig":
        """Raise ConfigurationError on a missing endpoint/id or an out-of-range parameter."""
        if require_node and not self.node_url.strip():
            raise ConfigurationError("node_url is not set")
        missing = [name for name in _REQUIRED_IDS if not getattr(self, name).strip()]
        if missing:
            raise ConfigurationError(f"missing required ids: {', '.join(missing)}")
        for name in ("dev_fee", "ui_fee", "oracle_fee"):
            v = getattr(self, name)
            if not (0 <= v <= FEE_DENOM):
                raise ConfigurationError(f"{name} must be in [0, {FEE_DENOM}]: {v}")
        if self.ui_fee > 0 and not self.ui_fee_script:
            raise ConfigurationError("ui_fee_script is required when ui_fee > 0")
        if self.oracle_fee > 0 and not self.oracle_fee_script:
            raise ConfigurationError("oracle_fee_script is required when oracle_fee > 0")
        if self.min_box_rent < 0:
            raise ConfigurationError(f"min_box_rent must be non-negative: {self.min_box_rent}")
        if self.miner_fee <= 0:
            raise ConfigurationError(f"miner_fee must be positive: {self.miner_fee}")
        if self.blocks_per_day <= 0:
            raise ConfigurationError(f"blocks_per_day must be positive: {self.blocks_per_day}")
        return self

    def fee_schedule(self) -> FeeSchedule:
        return FeeSchedule(
            dev_fee=self.dev_fee,
            ui_fee=self.ui_fee,
            oracle_fee=self.oracle_fee,
            ui_fee_script=self.ui_fee_script,
            oracle_fee_script=self.oracle_fee_script,
            min_box_rent=self.min_box_rent,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GluonConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"unknown config keys: {', '.join(unknown)}")
        kwargs: dict[str, Any] = {}
        for name, raw in data.items():
            if raw is None:
                continue
            if name in _INT_FIELDS:
                kwargs[name] = _parse_int(name, raw)
            else:
                kwargs[name] = str(raw).strip()
        return cls(**kwargs)

    @classmethod
    def from_env(cls, prefix: str = "GLUON_", environ: Optional[Mapping[str, str]] = None) -> "GluonConfig":
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}
        for f in fields(cls):
            raw = env.get(prefix + f.name.upper())
            if raw is None or not raw.strip():
                continue
            data[f.name] = raw
        logger.debug("loaded %d config values from environment (prefix %s)", len(data), prefix)
        return cls.from_mapping(data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "GluonConfig":
        p = Path(path)
        try:
            raw = yaml.safe_load(p.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"cannot read config file {p}: {exc}") from exc
        if raw is None:
            raw = {}
        if not isinstance(raw, Mapping):
            raise ConfigurationError(f"config file {p} must contain a mapping")
        logger.debug("loaded config file %s", p)
        return cls.from_mapping(raw)


def _parse_int(name: str, raw: Any) -> int:
    if isinstance(raw, bool):
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
