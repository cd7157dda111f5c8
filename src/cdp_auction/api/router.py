"""Auctions REST API — listing is public; bidding and finalizing need a JWT."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.cdp_auction.application.schemas import BidRequest
from src.cdp_auction.application.service import AuctionApplicationService
from src.cdp_common.database import get_db_session
from src.cdp_common.response import ApiResponse, success_response
from src.cdp_gateway.auth.dependencies import get_current_caller
from src.cdp_system.dependencies import get_system
from src.cdp_system.system import CdpSystem

router = APIRouter(prefix="/auctions", tags=["auctions"])

_service = AuctionApplicationService()


@router.get("")
async def list_auctions(
    system: Annotated[CdpSystem, Depends(get_system)],
    request: Request,
    include_settled: bool = Query(True, description="Include settled auctions"),
) -> ApiResponse:
    data = await _service.list_auctions(system, include_settled)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{auction_id}")
async def get_auction(
    auction_id: int,
    system: Annotated[CdpSystem, Depends(get_system)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_auction(system, auction_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/{auction_id}/bids")
async def place_bid(
    auction_id: int,
    body: BidRequest,
    caller: Annotated[str, Depends(get_current_caller)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.place_bid(system, db, caller, auction_id, body)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/{auction_id}/finalize")
async def finalize_auction(
    auction_id: int,
    caller: Annotated[str, Depends(get_current_caller)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.finalize(system, db, caller, auction_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
