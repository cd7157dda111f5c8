"""Collateral valuation and health factor.

health_factor = (collateral_usd * threshold / 100) * PRECISION / debt
A value below MIN_HEALTH_FACTOR (1.0) makes the position liquidatable. A
position without debt is unboundedly safe (MAX_UINT256).
"""

from src.cdp_common.enums import PositionStatus
from src.cdp_common.fixed_point import LIQUIDATION_PRECISION, MAX_UINT256, PRECISION

MIN_HEALTH_FACTOR = PRECISION
AT_RISK_HEALTH_FACTOR = 3 * PRECISION // 2  # 1.5


def usd_value(price: int, amount: int) -> int:
    return price * amount // PRECISION


def token_amount_from_usd(price: int, usd_amount: int) -> int:
    return usd_amount * PRECISION // price


def calculate_health_factor(collateral_value_usd: int, debt: int, threshold_pct: int) -> int:
    if debt == 0:
        return MAX_UINT256
    adjusted = collateral_value_usd * threshold_pct // LIQUIDATION_PRECISION
    return adjusted * PRECISION // debt


def classify_health_factor(health_factor: int) -> PositionStatus:
    if health_factor < MIN_HEALTH_FACTOR:
        return PositionStatus.LIQUIDATABLE
    if health_factor < AT_RISK_HEALTH_FACTOR:
        return PositionStatus.AT_RISK
    return PositionStatus.SAFE
