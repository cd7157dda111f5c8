"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.cdp_admin.api.router import router as admin_router
from src.cdp_auction.api.router import router as auction_router
from src.cdp_common.database import async_session_factory, engine
from src.cdp_common.errors import AppError
from src.cdp_common.response import error_response
from src.cdp_engine.api.liquidations_router import router as liquidations_router
from src.cdp_engine.api.protocol_router import router as protocol_router
from src.cdp_engine.api.router import router as positions_router
from src.cdp_gateway.middleware.request_log import RequestLogMiddleware
from src.cdp_system.dependencies import get_system

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify the journal DB, build the system and resume its sequence."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    system = get_system()
    async with async_session_factory() as session:
        await system.resume_journal(session)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, exc.details())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(positions_router, prefix="/api/v1")
app.include_router(liquidations_router, prefix="/api/v1")
app.include_router(auction_router, prefix="/api/v1")
app.include_router(protocol_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
