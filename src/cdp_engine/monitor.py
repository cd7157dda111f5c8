"""Read-only position and auction monitoring for keepers and dashboards."""

from dataclasses import dataclass

from src.cdp_auction.house import LiquidationAuctionHouse
from src.cdp_common.clock import Clock
from src.cdp_common.enums import AuctionStatus, PositionStatus
from src.cdp_engine.domain.health import classify_health_factor
from src.cdp_engine.engine import CdpEngine

_STATUS_ORDER = {
    PositionStatus.LIQUIDATABLE: 0,
    PositionStatus.AT_RISK: 1,
    PositionStatus.SAFE: 2,
}


@dataclass(frozen=True)
class PositionSnapshot:
    user: str
    collateral: dict[str, int]
    collateral_value_usd: int
    debt: int
    debt_reserved_for_auction: int
    health_factor: int
    status: PositionStatus


@dataclass(frozen=True)
class AuctionSnapshot:
    auction_id: int
    user: str
    token: str
    collateral_amount: int
    target_debt: int
    minimum_bid: int
    highest_bid: int
    highest_bidder: str | None
    start_time: int
    end_time: int
    settled: bool
    status: AuctionStatus
    next_minimum_bid: int
    can_finalize: bool
    is_expired: bool
    seconds_remaining: int


class PositionMonitor:
    def __init__(self, engine: CdpEngine, auctions: LiquidationAuctionHouse, clock: Clock) -> None:
        self._engine = engine
        self._auctions = auctions
        self._clock = clock

    def snapshot(self, user: str) -> PositionSnapshot:
        engine = self._engine
        debt, collateral_value = engine.get_account_information(user)
        health_factor = engine.get_health_factor(user)
        collateral = {
            c.token: engine.get_collateral_balance(user, c.token)
            for c in engine.get_collateral_tokens()
        }
        return PositionSnapshot(
            user=user,
            collateral=collateral,
            collateral_value_usd=collateral_value,
            debt=debt,
            debt_reserved_for_auction=engine.get_debt_reserved_for_auction(user),
            health_factor=health_factor,
            status=classify_health_factor(health_factor),
        )

    def list_positions(self, status: PositionStatus | None = None) -> list[PositionSnapshot]:
        """Positions with debt, riskiest first (by status, then health factor)."""
        snapshots = [self.snapshot(user) for user in self._engine.get_users()]
        snapshots = [s for s in snapshots if s.debt > 0]
        if status is not None:
            snapshots = [s for s in snapshots if s.status == status]
        snapshots.sort(key=lambda s: (_STATUS_ORDER[s.status], s.health_factor))
        return snapshots

    def auction_snapshot(self, auction_id: int) -> AuctionSnapshot:
        house = self._auctions
        auction = house.get_auction(auction_id)
        now = self._clock.now()
        return AuctionSnapshot(
            auction_id=auction.auction_id,
            user=auction.user,
            token=auction.token,
            collateral_amount=auction.collateral_amount,
            target_debt=auction.target_debt,
            minimum_bid=auction.minimum_bid,
            highest_bid=auction.highest_bid,
            highest_bidder=auction.highest_bidder,
            start_time=auction.start_time,
            end_time=auction.end_time,
            settled=auction.settled,
            status=house.auction_status(auction_id),
            next_minimum_bid=house.next_minimum_bid(auction_id),
            can_finalize=house.can_finalize(auction_id),
            is_expired=now >= auction.end_time,
            seconds_remaining=max(auction.end_time - now, 0),
        )

    def list_auctions(self, include_settled: bool = True) -> list[AuctionSnapshot]:
        """Unsettled auctions first, newest first within each group."""
        snapshots = [self.auction_snapshot(a.auction_id) for a in self._auctions.list_auctions()]
        if not include_settled:
            snapshots = [s for s in snapshots if not s.settled]
        snapshots.sort(key=lambda s: (s.settled, -s.auction_id))
        return snapshots
