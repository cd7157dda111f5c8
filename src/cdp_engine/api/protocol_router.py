"""Protocol REST API — global ledger view and keeper oracle pokes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.cdp_common.database import get_db_session
from src.cdp_common.response import ApiResponse, success_response
from src.cdp_engine.application.service import EngineApplicationService
from src.cdp_gateway.auth.dependencies import get_current_caller
from src.cdp_system.dependencies import get_system
from src.cdp_system.system import CdpSystem

router = APIRouter(prefix="/protocol", tags=["protocol"])

_service = EngineApplicationService()


@router.get("")
async def get_protocol(
    system: Annotated[CdpSystem, Depends(get_system)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_protocol(system)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/feeds/{feed_id:path}/poke")
async def poke_feed(
    feed_id: str,
    caller: Annotated[str, Depends(get_current_caller)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.poke_feed(system, db, feed_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
