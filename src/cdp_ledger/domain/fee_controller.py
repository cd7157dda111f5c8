"""Stability fee controller — proportional feedback on peg deviation.

Below peg the fee rises (throttles minting, encourages burning); above peg
it falls (encourages minting). Deviations inside the deadband leave the
base fee unchanged. No integral or derivative term.
"""

from dataclasses import dataclass

from src.cdp_common.errors import InvalidParameterError
from src.cdp_common.fixed_point import BPS_DENOMINATOR, PRECISION

PEG_TARGET = PRECISION  # 1.00 USD
DEADBAND_BPS = 10       # 0.10%
SENSITIVITY_SCALE = 100  # sensitivity 100 => one fee bp per bp of excess deviation


@dataclass
class FeeParameters:
    base_fee_bps: int
    min_fee_bps: int
    max_fee_bps: int
    sensitivity_below_peg: int
    sensitivity_above_peg: int

    def validate(self) -> None:
        if not (0 <= self.min_fee_bps <= self.base_fee_bps <= self.max_fee_bps):
            raise InvalidParameterError(
                "fee caps",
                f"require 0 <= min ({self.min_fee_bps}) <= base ({self.base_fee_bps})"
                f" <= max ({self.max_fee_bps})",
            )
        if self.max_fee_bps > BPS_DENOMINATOR:
            raise InvalidParameterError("max_fee_bps", f"{self.max_fee_bps} > {BPS_DENOMINATOR}")
        if self.sensitivity_below_peg < 0 or self.sensitivity_above_peg < 0:
            raise InvalidParameterError("sensitivity", "must not be negative")


def peg_deviation_bps(peg_price: int) -> int:
    """Signed deviation from the 1.00 target in whole bps (negative = below peg)."""
    diff = peg_price - PEG_TARGET
    magnitude = abs(diff) * BPS_DENOMINATOR // PEG_TARGET
    return magnitude if diff >= 0 else -magnitude


def target_fee_bps(peg_price: int, params: FeeParameters) -> int:
    deviation = peg_deviation_bps(peg_price)
    excess = abs(deviation) - DEADBAND_BPS
    if excess <= 0:
        return params.base_fee_bps
    if deviation < 0:
        fee = params.base_fee_bps + excess * params.sensitivity_below_peg // SENSITIVITY_SCALE
        return min(fee, params.max_fee_bps)
    fee = params.base_fee_bps - excess * params.sensitivity_above_peg // SENSITIVITY_SCALE
    return max(fee, params.min_fee_bps)
