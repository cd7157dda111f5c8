"""Pure bidding rules for the English auction."""

from src.cdp_auction.domain.models import Auction
from src.cdp_common.enums import AuctionStatus
from src.cdp_common.fixed_point import BPS_DENOMINATOR


def next_minimum_bid(auction: Auction, min_bid_increment_bps: int) -> int:
    """Smallest acceptable next bid, never above the target debt."""
    if auction.highest_bidder is None:
        return auction.minimum_bid
    increment = max(auction.highest_bid * min_bid_increment_bps // BPS_DENOMINATOR, 1)
    return min(auction.highest_bid + increment, auction.target_debt)


def can_finalize(auction: Auction, now: int) -> bool:
    if auction.settled:
        return False
    return now >= auction.end_time or auction.highest_bid == auction.target_debt


def awarded_collateral(collateral_amount: int, bid: int, target_debt: int) -> int:
    """Collateral won for *bid*: pro rata to the target, at least 1, at most the lot."""
    awarded = collateral_amount * bid // target_debt
    return min(max(awarded, 1), collateral_amount)


def auction_status(auction: Auction, now: int) -> AuctionStatus:
    if auction.settled:
        return AuctionStatus.SETTLED
    if can_finalize(auction, now):
        return AuctionStatus.EXPIRED
    if auction.highest_bidder is None:
        return AuctionStatus.CREATED
    return AuctionStatus.OPEN
