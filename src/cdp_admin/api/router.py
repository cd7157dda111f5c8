"""Admin REST API — every endpoint requires the admin address."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.cdp_admin.application.service import AdminService
from src.cdp_common.database import get_db_session
from src.cdp_common.enums import EventType
from src.cdp_common.response import ApiResponse, success_response
from src.cdp_gateway.auth.dependencies import require_admin
from src.cdp_system.dependencies import get_system
from src.cdp_system.system import CdpSystem

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


class ValueRequest(BaseModel):
    value: int


class FeeSensitivityRequest(BaseModel):
    below_peg: int = Field(..., ge=0)
    above_peg: int = Field(..., ge=0)


class FeeCapsRequest(BaseModel):
    min_fee_bps: int = Field(..., ge=0)
    max_fee_bps: int = Field(..., ge=0)


class FeedAnswerRequest(BaseModel):
    answer: int = Field(..., description="Raw answer in the feed's decimals")


class FaucetRequest(BaseModel):
    token: str = Field(..., min_length=1)
    to: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)


@router.post("/pause")
async def pause(
    caller: Annotated[str, Depends(require_admin)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(await _service.pause(system, db, caller))


@router.post("/unpause")
async def unpause(
    caller: Annotated[str, Depends(require_admin)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(await _service.unpause(system, db, caller))


@router.put("/risk/liquidation-threshold")
async def set_liquidation_threshold(
    body: ValueRequest,
    caller: Annotated[str, Depends(require_admin)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(
        await _service.set_liquidation_threshold(system, db, caller, body.value)
    )


@router.put("/risk/liquidation-bonus")
async def set_liquidation_bonus(
    body: ValueRequest,
    caller: Annotated[str, Depends(require_admin)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(await _service.set_liquidation_bonus(system, db, caller, body.value))


@router.put("/fees/sensitivity")
async def set_fee_sensitivity(
    body: FeeSensitivityRequest,
    caller: Annotated[str, Depends(require_admin)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(
        await _service.set_fee_sensitivity(system, db, caller, body.below_peg, body.above_peg)
    )


@router.put("/fees/caps")
async def set_fee_caps(
    body: FeeCapsRequest,
    caller: Annotated[str, Depends(require_admin)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(
        await _service.set_fee_caps(system, db, caller, body.min_fee_bps, body.max_fee_bps)
    )


@router.put("/fees/base")
async def set_base_fee(
    body: ValueRequest,
    caller: Annotated[str, Depends(require_admin)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(await _service.set_base_fee(system, db, caller, body.value))


@router.put("/feeds/{feed_id:path}/answer")
async def set_feed_answer(
    feed_id: str,
    body: FeedAnswerRequest,
    caller: Annotated[str, Depends(require_admin)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(await _service.set_feed_answer(system, db, feed_id, body.answer))


@router.post("/faucet")
async def faucet(
    body: FaucetRequest,
    caller: Annotated[str, Depends(require_admin)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(
        await _service.faucet(system, db, caller, body.token, body.to, body.amount)
    )


@router.get("/events")
async def list_events(
    caller: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    event_type: EventType | None = Query(None, description="Filter by EventType"),
    before_id: int | None = Query(None, description="Keyset cursor: return ids below this"),
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    return success_response(await _service.list_events(db, event_type, before_id, limit))
