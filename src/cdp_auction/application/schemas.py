"""Pydantic schemas for the auctions API."""

from pydantic import BaseModel, Field

from src.cdp_common.fixed_point import wad_to_display
from src.cdp_engine.monitor import AuctionSnapshot


class BidRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Bid in stablecoin (18 decimals)")


class AuctionResponse(BaseModel):
    auction_id: int
    user: str
    token: str
    collateral_amount: str
    target_debt: str
    target_debt_display: str
    minimum_bid: str
    highest_bid: str
    highest_bid_display: str
    highest_bidder: str | None
    start_time: int
    end_time: int
    settled: bool
    status: str
    next_minimum_bid: str
    can_finalize: bool
    is_expired: bool
    seconds_remaining: int

    @classmethod
    def from_snapshot(cls, s: AuctionSnapshot) -> "AuctionResponse":
        return cls(
            auction_id=s.auction_id,
            user=s.user,
            token=s.token,
            collateral_amount=str(s.collateral_amount),
            target_debt=str(s.target_debt),
            target_debt_display=wad_to_display(s.target_debt),
            minimum_bid=str(s.minimum_bid),
            highest_bid=str(s.highest_bid),
            highest_bid_display=wad_to_display(s.highest_bid),
            highest_bidder=s.highest_bidder,
            start_time=s.start_time,
            end_time=s.end_time,
            settled=s.settled,
            status=s.status.value,
            next_minimum_bid=str(s.next_minimum_bid),
            can_finalize=s.can_finalize,
            is_expired=s.is_expired,
            seconds_remaining=s.seconds_remaining,
        )


class AuctionListResponse(BaseModel):
    items: list[AuctionResponse]
    total: int
    next_auction_id: int


class SettlementResponse(BaseModel):
    auction_id: int
    winner: str | None
    winning_bid: str
    collateral_awarded: str
    collateral_returned: str
