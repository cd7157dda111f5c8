"""Shared test fixtures."""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")

from collections.abc import AsyncGenerator, Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from config.settings import Settings
from src.cdp_common.clock import ManualClock
from src.cdp_system.system import CdpSystem, build_system

WAD = 10**18
ADMIN = "0xadmin"
WETH = "0xweth"
WBTC = "0xwbtc"
SC = "0xsc"


def make_settings(**overrides: Any) -> Settings:
    """Settings for engine tests: feeds never go stale and any move is accepted.

    Oracle tests that exercise staleness and deviation pass stricter values.
    """
    values: dict[str, Any] = {
        "JWT_SECRET": "test-secret-not-for-production",
        "ADMIN_ADDRESS": ADMIN,
        "ORACLE_HEARTBEAT_SECONDS": 10 * 365 * 24 * 3600,
        "ORACLE_MAX_DEVIATION_BPS": 10_000,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=1_700_000_000)


@pytest.fixture
def system(clock: ManualClock) -> CdpSystem:
    return build_system(make_settings(), clock)


@pytest.fixture
def make_system(clock: ManualClock) -> Callable[..., CdpSystem]:
    """Build a system on the shared clock with settings overrides."""

    def _make(**overrides: Any) -> CdpSystem:
        return build_system(make_settings(**overrides), clock)

    return _make


@pytest.fixture
def db() -> AsyncMock:
    """Stand-in AsyncSession for the event journal."""
    return AsyncMock()


@pytest.fixture
async def client(system: CdpSystem, db: AsyncMock) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client with the system and DB session overridden."""
    from src.cdp_common.database import get_db_session
    from src.cdp_system.dependencies import get_system
    from src.main import app

    async def _db_session() -> AsyncGenerator[AsyncMock, None]:
        yield db

    app.dependency_overrides[get_system] = lambda: system
    app.dependency_overrides[get_db_session] = _db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
