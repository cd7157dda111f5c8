"""Domain models for cdp_auction — pure dataclasses, no framework dependency."""

from dataclasses import dataclass, field

from src.cdp_common.errors import InvalidParameterError
from src.cdp_common.fixed_point import BPS_DENOMINATOR


@dataclass
class Auction:
    auction_id: int
    user: str
    token: str
    collateral_amount: int
    target_debt: int
    minimum_bid: int
    start_time: int
    end_time: int
    highest_bid: int = 0
    highest_bidder: str | None = None
    settled: bool = False
    # Filled in at settlement
    collateral_awarded: int = 0
    collateral_returned: int = 0


@dataclass
class AuctionConfig:
    min_duration_seconds: int
    max_duration_seconds: int
    min_bid_increment_bps: int

    def validate(self) -> None:
        if not (0 < self.min_duration_seconds <= self.max_duration_seconds):
            raise InvalidParameterError(
                "auction duration bounds",
                f"require 0 < min ({self.min_duration_seconds})"
                f" <= max ({self.max_duration_seconds})",
            )
        if not (0 <= self.min_bid_increment_bps <= BPS_DENOMINATOR):
            raise InvalidParameterError(
                "min_bid_increment_bps", f"{self.min_bid_increment_bps} not in [0, 10000]"
            )


@dataclass
class AuctionHouseState:
    auctions: dict[int, Auction] = field(default_factory=dict)
    next_auction_id: int = 0
