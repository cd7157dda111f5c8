"""Tests for the pure English-auction bidding rules."""

import pytest

from src.cdp_auction.domain.bidding import (
    auction_status,
    awarded_collateral,
    can_finalize,
    next_minimum_bid,
)
from src.cdp_auction.domain.models import Auction, AuctionConfig
from src.cdp_common.enums import AuctionStatus
from src.cdp_common.errors import InvalidParameterError


def _make_auction(**overrides: object) -> Auction:
    values: dict[str, object] = {
        "auction_id": 0,
        "user": "0xalice",
        "token": "0xweth",
        "collateral_amount": 1000,
        "target_debt": 4000,
        "minimum_bid": 3200,
        "start_time": 100,
        "end_time": 200,
    }
    values.update(overrides)
    return Auction(**values)  # type: ignore[arg-type]


class TestNextMinimumBid:
    def test_first_bid_uses_floor(self) -> None:
        assert next_minimum_bid(_make_auction(), 500) == 3200

    def test_increment_over_highest(self) -> None:
        auction = _make_auction(highest_bid=3200, highest_bidder="0xbob")
        assert next_minimum_bid(auction, 500) == 3360

    def test_capped_at_target(self) -> None:
        auction = _make_auction(highest_bid=3900, highest_bidder="0xbob")
        assert next_minimum_bid(auction, 500) == 4000

    def test_increment_at_least_one(self) -> None:
        auction = _make_auction(highest_bid=10, highest_bidder="0xbob", target_debt=100)
        assert next_minimum_bid(auction, 500) == 11


class TestFinalization:
    def test_not_before_end(self) -> None:
        assert can_finalize(_make_auction(), 199) is False

    def test_at_end(self) -> None:
        assert can_finalize(_make_auction(), 200) is True

    def test_fully_bid_finalizes_early(self) -> None:
        auction = _make_auction(highest_bid=4000, highest_bidder="0xbob")
        assert can_finalize(auction, 150) is True

    def test_settled_cannot_finalize(self) -> None:
        assert can_finalize(_make_auction(settled=True), 300) is False


class TestAwardedCollateral:
    def test_pro_rata(self) -> None:
        assert awarded_collateral(1000, 3200, 4000) == 800

    def test_full_fill(self) -> None:
        assert awarded_collateral(1000, 4000, 4000) == 1000

    def test_at_least_one(self) -> None:
        assert awarded_collateral(1000, 1, 4000) == 1


class TestStatus:
    def test_lifecycle(self) -> None:
        auction = _make_auction()
        assert auction_status(auction, 150) == AuctionStatus.CREATED
        auction.highest_bid, auction.highest_bidder = 3200, "0xbob"
        assert auction_status(auction, 150) == AuctionStatus.OPEN
        assert auction_status(auction, 200) == AuctionStatus.EXPIRED
        auction.settled = True
        assert auction_status(auction, 200) == AuctionStatus.SETTLED


class TestAuctionConfig:
    def test_min_above_max_rejected(self) -> None:
        with pytest.raises(InvalidParameterError):
            AuctionConfig(
                min_duration_seconds=100, max_duration_seconds=50, min_bid_increment_bps=500
            ).validate()
