"""AuctionApplicationService — bids, finalization and auction views."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.cdp_auction.application.schemas import (
    AuctionListResponse,
    AuctionResponse,
    BidRequest,
    SettlementResponse,
)
from src.cdp_system.system import CdpSystem


class AuctionApplicationService:
    async def list_auctions(self, system: CdpSystem, include_settled: bool) -> AuctionListResponse:
        def _view() -> AuctionListResponse:
            items = [
                AuctionResponse.from_snapshot(s)
                for s in system.monitor.list_auctions(include_settled)
            ]
            return AuctionListResponse(
                items=items,
                total=len(items),
                next_auction_id=system.auctions.get_next_auction_id(),
            )

        return await system.read(_view)

    async def get_auction(self, system: CdpSystem, auction_id: int) -> AuctionResponse:
        snapshot = await system.read(lambda: system.monitor.auction_snapshot(auction_id))
        return AuctionResponse.from_snapshot(snapshot)

    async def place_bid(
        self, system: CdpSystem, db: AsyncSession, caller: str, auction_id: int, body: BidRequest
    ) -> AuctionResponse:
        await system.execute(
            db, lambda: system.auctions.place_bid(caller, auction_id, body.amount)
        )
        return await self.get_auction(system, auction_id)

    async def finalize(
        self, system: CdpSystem, db: AsyncSession, caller: str, auction_id: int
    ) -> SettlementResponse:
        auction = await system.execute(
            db, lambda: system.auctions.finalize_auction(caller, auction_id)
        )
        return SettlementResponse(
            auction_id=auction.auction_id,
            winner=auction.highest_bidder,
            winning_bid=str(auction.highest_bid),
            collateral_awarded=str(auction.collateral_awarded),
            collateral_returned=str(auction.collateral_returned),
        )
