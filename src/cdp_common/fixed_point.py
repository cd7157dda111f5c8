"""Integer fixed-point utilities.

Two scales are used and never mixed:
  PRECISION (1e18) — token amounts, USD values, prices, health factors
  RAY       (1e27) — the debt growth index

All arithmetic is int. No float, no Decimal.
"""

PRECISION = 10**18
RAY = 10**27
BPS_DENOMINATOR = 10_000
LIQUIDATION_PRECISION = 100
SECONDS_PER_YEAR = 365 * 24 * 60 * 60
MAX_UINT256 = 2**256 - 1


def ceil_div(numerator: int, denominator: int) -> int:
    """Integer ceiling division for non-negative operands: (a + b - 1) // b."""
    if denominator <= 0:
        raise ValueError(f"denominator must be positive, got {denominator}")
    if numerator == 0:
        return 0
    return (numerator + denominator - 1) // denominator


def mul_div_up(a: int, b: int, denominator: int) -> int:
    """ceil(a * b / denominator)."""
    return ceil_div(a * b, denominator)


def bps_of(amount: int, bps: int) -> int:
    """Floor of amount * bps / 10000."""
    return amount * bps // BPS_DENOMINATOR


def to_wad(value: int, decimals: int) -> int:
    """Rescale an integer with *decimals* decimals to 18 decimals."""
    if decimals == 18:
        return value
    if decimals < 18:
        return value * 10 ** (18 - decimals)
    return value // 10 ** (decimals - 18)


def wad_to_display(amount: int, places: int = 4) -> str:
    """Render an 18-decimal amount: 1_500_000_000_000_000_000 -> '1.5000'."""
    sign = "-" if amount < 0 else ""
    amount = abs(amount)
    whole, frac = divmod(amount, PRECISION)
    frac_str = f"{frac:018d}"[:places]
    if places == 0:
        return f"{sign}{whole:,}"
    return f"{sign}{whole:,}.{frac_str}"


def health_factor_to_display(health_factor: int) -> str:
    """Health factor for humans; the unbounded sentinel renders as '∞'."""
    if health_factor == MAX_UINT256:
        return "∞"
    return wad_to_display(health_factor, places=3)
