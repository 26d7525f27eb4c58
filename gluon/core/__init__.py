"""
Core Gluon kernels (pure, integer-only).

`gluon.core.exchange` depends on the record views in `gluon.state` and is not
re-exported here; import it directly or through the top-level `gluon` package.
"""

from .errors import (
    ConfigurationError,
    GluonError,
    InsufficientFunds,
    InvalidEpochRequest,
    RecordDecodeError,
    UpstreamUnavailable,
)
from .fees import (
    FeeBreakdown,
    FeeKind,
    FeeOutputSpec,
    FeeSchedule,
    Operation,
    decay_dev_fee,
    dev_fee,
    fee_breakdown,
    fee_outputs,
    nominal_fee,
)
from .ratio import base_volume, fusion_ratio, fusion_ratio_from, stable_price, volatile_price, volume_decay
from .volume import Direction, VolumeState, accumulate, days_passed, epoch_anchor, roll_buckets

__all__ = [
    "ConfigurationError",
    "GluonError",
    "InsufficientFunds",
    "InvalidEpochRequest",
    "RecordDecodeError",
    "UpstreamUnavailable",
    "FeeBreakdown",
    "FeeKind",
    "FeeOutputSpec",
    "FeeSchedule",
    "Operation",
    "decay_dev_fee",
    "dev_fee",
    "fee_breakdown",
    "fee_outputs",
    "nominal_fee",
    "base_volume",
    "fusion_ratio",
    "fusion_ratio_from",
    "stable_price",
    "volatile_price",
    "volume_decay",
    "Direction",
    "VolumeState",
    "accumulate",
    "days_passed",
    "epoch_anchor",
    "roll_buckets",
]
