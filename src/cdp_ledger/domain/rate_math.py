"""Normalized <-> absolute debt conversions and rate growth.

Both conversions round up, so the ledger never under-collects through
rounding: from_normalized(to_normalized(x, r), r) >= x.
"""

from src.cdp_common.fixed_point import BPS_DENOMINATOR, RAY, SECONDS_PER_YEAR, mul_div_up


def to_normalized(absolute_debt: int, rate: int) -> int:
    """ceil(absolute_debt * RAY / rate)."""
    if rate <= 0:
        raise ValueError(f"rate must be positive, got {rate}")
    return mul_div_up(absolute_debt, RAY, rate)


def from_normalized(normalized_debt: int, rate: int) -> int:
    """ceil(normalized_debt * rate / RAY)."""
    return mul_div_up(normalized_debt, rate, RAY)


def grow_rate(rate: int, fee_bps: int, elapsed_seconds: int) -> int:
    """rate + rate * fee_bps * elapsed / (10000 * SECONDS_PER_YEAR), floored."""
    if elapsed_seconds <= 0 or fee_bps <= 0:
        return rate
    return rate + rate * fee_bps * elapsed_seconds // (BPS_DENOMINATOR * SECONDS_PER_YEAR)
