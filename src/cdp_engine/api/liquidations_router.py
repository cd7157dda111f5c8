"""Liquidations REST API — open liquidations and monitor positions at risk."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.cdp_common.database import get_db_session
from src.cdp_common.enums import PositionStatus
from src.cdp_common.response import ApiResponse, success_response
from src.cdp_engine.application.schemas import LiquidateRequest
from src.cdp_engine.application.service import EngineApplicationService
from src.cdp_gateway.auth.dependencies import get_current_caller
from src.cdp_system.dependencies import get_system
from src.cdp_system.system import CdpSystem

router = APIRouter(prefix="/liquidations", tags=["liquidations"])

_service = EngineApplicationService()


@router.post("")
async def liquidate(
    body: LiquidateRequest,
    caller: Annotated[str, Depends(get_current_caller)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.liquidate(system, db, caller, body)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/positions")
async def list_positions(
    caller: Annotated[str, Depends(get_current_caller)],
    system: Annotated[CdpSystem, Depends(get_system)],
    request: Request,
    status: PositionStatus | None = Query(None, description="Filter by position status"),
) -> ApiResponse:
    data = await _service.list_positions(system, status)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
