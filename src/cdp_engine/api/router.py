"""Positions REST API — all endpoints require JWT authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.cdp_common.database import get_db_session
from src.cdp_common.response import ApiResponse, success_response
from src.cdp_engine.application.schemas import (
    BurnAndRedeemRequest,
    CollateralRequest,
    DepositAndMintRequest,
    StableCoinRequest,
)
from src.cdp_engine.application.service import EngineApplicationService
from src.cdp_gateway.auth.dependencies import get_current_caller
from src.cdp_system.dependencies import get_system
from src.cdp_system.system import CdpSystem

router = APIRouter(prefix="/positions", tags=["positions"])

_service = EngineApplicationService()


@router.get("/me")
async def get_my_position(
    caller: Annotated[str, Depends(get_current_caller)],
    system: Annotated[CdpSystem, Depends(get_system)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_account(system, caller)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{user}")
async def get_position(
    user: str,
    caller: Annotated[str, Depends(get_current_caller)],
    system: Annotated[CdpSystem, Depends(get_system)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_account(system, user)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{user}/health-factor")
async def get_health_factor(
    user: str,
    caller: Annotated[str, Depends(get_current_caller)],
    system: Annotated[CdpSystem, Depends(get_system)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_health_factor(system, user)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/deposit")
async def deposit(
    body: CollateralRequest,
    caller: Annotated[str, Depends(get_current_caller)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.deposit(system, db, caller, body)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/redeem")
async def redeem(
    body: CollateralRequest,
    caller: Annotated[str, Depends(get_current_caller)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.redeem(system, db, caller, body)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/mint")
async def mint(
    body: StableCoinRequest,
    caller: Annotated[str, Depends(get_current_caller)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.mint(system, db, caller, body)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/burn")
async def burn(
    body: StableCoinRequest,
    caller: Annotated[str, Depends(get_current_caller)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.burn(system, db, caller, body)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/deposit-and-mint")
async def deposit_and_mint(
    body: DepositAndMintRequest,
    caller: Annotated[str, Depends(get_current_caller)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.deposit_and_mint(system, db, caller, body)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/burn-and-redeem")
async def burn_and_redeem(
    body: BurnAndRedeemRequest,
    caller: Annotated[str, Depends(get_current_caller)],
    system: Annotated[CdpSystem, Depends(get_system)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.burn_and_redeem(system, db, caller, body)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
