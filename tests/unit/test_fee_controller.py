"""Tests for the stability fee controller."""

import pytest

from src.cdp_common.errors import InvalidParameterError
from src.cdp_common.fixed_point import PRECISION
from src.cdp_ledger.domain.fee_controller import (
    FeeParameters,
    peg_deviation_bps,
    target_fee_bps,
)


def _make_params(**overrides: int) -> FeeParameters:
    values = {
        "base_fee_bps": 200,
        "min_fee_bps": 0,
        "max_fee_bps": 2000,
        "sensitivity_below_peg": 100,
        "sensitivity_above_peg": 100,
    }
    values.update(overrides)
    return FeeParameters(**values)


def _price(cents: int) -> int:
    return cents * PRECISION // 100


class TestPegDeviation:
    def test_below_peg_is_negative(self) -> None:
        assert peg_deviation_bps(_price(98)) == -200

    def test_above_peg_is_positive(self) -> None:
        assert peg_deviation_bps(_price(102)) == 200

    def test_at_peg(self) -> None:
        assert peg_deviation_bps(PRECISION) == 0


class TestTargetFee:
    def test_below_peg_raises_fee_above_base(self) -> None:
        assert target_fee_bps(_price(98), _make_params()) == 390

    def test_above_peg_lowers_fee_below_base(self) -> None:
        assert target_fee_bps(_price(102), _make_params()) == 10

    def test_far_above_peg_floors_at_min(self) -> None:
        assert target_fee_bps(_price(105), _make_params(min_fee_bps=50)) == 50

    def test_far_below_peg_capped_at_max(self) -> None:
        assert target_fee_bps(_price(50), _make_params()) == 2000

    def test_inside_deadband_returns_base(self) -> None:
        price = PRECISION + PRECISION * 5 // 10_000  # +5 bps
        assert target_fee_bps(price, _make_params()) == 200

    def test_sensitivity_scales_response(self) -> None:
        # 190 bps excess at 50% sensitivity -> +95
        assert target_fee_bps(_price(98), _make_params(sensitivity_below_peg=50)) == 295

    def test_asymmetric_sensitivity(self) -> None:
        params = _make_params(sensitivity_below_peg=200, sensitivity_above_peg=0)
        assert target_fee_bps(_price(98), params) == 580
        assert target_fee_bps(_price(102), params) == 200


class TestFeeParametersValidate:
    def test_valid(self) -> None:
        _make_params().validate()

    def test_min_above_base_rejected(self) -> None:
        with pytest.raises(InvalidParameterError):
            _make_params(min_fee_bps=300).validate()

    def test_max_above_100_percent_rejected(self) -> None:
        with pytest.raises(InvalidParameterError):
            _make_params(max_fee_bps=10_001).validate()

    def test_negative_sensitivity_rejected(self) -> None:
        with pytest.raises(InvalidParameterError):
            _make_params(sensitivity_above_peg=-1).validate()
