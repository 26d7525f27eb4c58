"""
Rolling daily transmutation volume (pure, integer-only).

Each direction keeps `BUCKET_LEN` daily buckets, slot 0 being the current day.
Both directions share one epoch anchor height. Before volume is recorded the
buckets are shifted right by the number of whole days elapsed since the anchor
(new empty days enter at the front, the oldest fall off the end).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Tuple

from .errors import InvalidEpochRequest
from .math import BLOCKS_PER_DAY, BUCKET_LEN, require_non_negative, require_positive


class Direction(str, Enum):
    TO_STABLE = "to_stable"  # volatile in, stable out
    TO_VOLATILE = "to_volatile"  # stable in, volatile out


def days_passed(height: int, anchor_height: int, blocks_per_day: int = BLOCKS_PER_DAY) -> int:
    """Whole days since `anchor_height`, clamped to [0, BUCKET_LEN]."""
    require_positive("blocks_per_day", blocks_per_day)
    days = (height - anchor_height) // blocks_per_day
    return max(0, min(days, BUCKET_LEN))


def roll_buckets(buckets: Sequence[int], days: int) -> Tuple[int, ...]:
    """Shift `buckets` right by `days`, inserting zero buckets at the front."""
    if len(buckets) != BUCKET_LEN:
        raise ValueError(f"expected {BUCKET_LEN} buckets, got {len(buckets)}")
    days = max(0, min(days, BUCKET_LEN))
    return ((0,) * days + tuple(buckets))[:BUCKET_LEN]


def epoch_anchor(height: int, blocks_per_day: int = BLOCKS_PER_DAY) -> int:
    """Start height of the day containing `height`."""
    require_non_negative("height", height)
    require_positive("blocks_per_day", blocks_per_day)
    return (height // blocks_per_day) * blocks_per_day


def accumulate(buckets: Sequence[int], days: int = BUCKET_LEN) -> int:
    """Sum of the `days` most recent buckets."""
    if days > BUCKET_LEN:
        raise InvalidEpochRequest(f"cannot accumulate volume for more than {BUCKET_LEN} days, got {days}")
    if days < 0:
        raise InvalidEpochRequest(f"days must be non-negative, got {days}")
    return sum(buckets[:days])


@dataclass(frozen=True)
class VolumeState:
    """Both directional bucket arrays plus their shared anchor height."""

    to_stable: Tuple[int, ...]
    to_volatile: Tuple[int, ...]
    anchor_height: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "to_stable", tuple(self.to_stable))
        object.__setattr__(self, "to_volatile", tuple(self.to_volatile))
        for name, buckets in (("to_stable", self.to_stable), ("to_volatile", self.to_volatile)):
            if len(buckets) != BUCKET_LEN:
                raise ValueError(f"{name} must have {BUCKET_LEN} buckets, got {len(buckets)}")
        require_non_negative("anchor_height", self.anchor_height)

    def buckets(self, direction: Direction) -> Tuple[int, ...]:
        return self.to_stable if direction is Direction.TO_STABLE else self.to_volatile

    def record(
        self,
        direction: Direction,
        height: int,
        volume: int,
        blocks_per_day: int = BLOCKS_PER_DAY,
    ) -> "VolumeState":
        """
        Roll both directions forward to `height` and add `volume` to the acting one.

        The returned state is stamped with the anchor of the day containing `height`.
        """
        require_non_negative("volume", volume)
        days = days_passed(height, self.anchor_height, blocks_per_day)
        to_stable = list(roll_buckets(self.to_stable, days))
        to_volatile = list(roll_buckets(self.to_volatile, days))
        if direction is Direction.TO_STABLE:
            to_stable[0] += volume
        else:
            to_volatile[0] += volume
        return VolumeState(
            to_stable=tuple(to_stable),
            to_volatile=tuple(to_volatile),
            anchor_height=epoch_anchor(height, blocks_per_day),
        )

    def accumulate(self, direction: Direction, days: int = BUCKET_LEN) -> int:
        return accumulate(self.buckets(direction), days)
