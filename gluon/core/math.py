"""Fixed-point integer arithmetic shared by the Gluon kernels.

Every function is stateless and operates on plain Python ints.

The on-chain validation script computes with `BigInt`, whose division truncates
toward zero. Python's `//` floors toward -inf, so the two only agree for
non-negative operands. All kernels divide through `tdiv()` to keep the
truncation direction identical to the script even if an intermediate ever goes
negative.
"""

from __future__ import annotations

# Domain constants (mirrors the reserve contract)
PRECISION: int = 1_000_000_000  # 1e9 fixed-point denominator
QSTAR: int = 660_000_000  # fusion ratio cap
PHI0: int = 5_000_000  # base transmutation decay
PHI1: int = 500_000_000  # volume-proportional transmutation decay
FISSION_LEVY: int = 1_000_000  # 0.1% of PRECISION
FUSION_LEVY: int = 5_000_000  # 0.5% of PRECISION
FIXED_BUFFER: int = 1_000_000  # base units locked in the reserve record
FEE_DENOM: int = 100_000
BLOCKS_PER_DAY: int = 720
BUCKET_LEN: int = 14


def require_int(name: str, value: object) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    return value


def require_non_negative(name: str, value: object) -> int:
    v = require_int(name, value)
    if v < 0:
        raise ValueError(f"{name} must be non-negative: {v}")
    return v


def require_positive(name: str, value: object) -> int:
    v = require_int(name, value)
    if v <= 0:
        raise ValueError(f"{name} must be positive: {v}")
    return v


def tdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero (`BigInt./` semantics)."""
    if b == 0:
        raise ZeroDivisionError("tdiv by zero")
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def mul_div(a: int, b: int, denom: int) -> int:
    """``a * b / denom`` with a single truncation at the end."""
    return tdiv(a * b, denom)
