"""HTTP-level tests: envelope, authentication and error mapping."""

import logging
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from src.cdp_gateway.auth.jwt_handler import create_access_token
from src.cdp_system.system import CdpSystem

WAD = 10**18
WETH = "0xweth"
ADMIN_TOKEN = {"Authorization": f"Bearer {create_access_token('0xadmin')}"}
ALICE_TOKEN = {"Authorization": f"Bearer {create_access_token('0xalice')}"}
BOB_TOKEN = {"Authorization": f"Bearer {create_access_token('0xbob')}"}


async def _faucet(client: AsyncClient, to: str, amount: int) -> None:
    resp = await client.post(
        "/api/v1/admin/faucet",
        json={"token": WETH, "to": to, "amount": amount},
        headers=ADMIN_TOKEN,
    )
    assert resp.status_code == 200


async def _open_alice(client: AsyncClient) -> None:
    await _faucet(client, "0xalice", 10 * WAD)
    resp = await client.post(
        "/api/v1/positions/deposit-and-mint",
        json={"token": WETH, "amount_collateral": 10 * WAD, "amount_to_mint": 8000 * WAD},
        headers=ALICE_TOKEN,
    )
    assert resp.status_code == 200


class TestEnvelope:
    async def test_health(self, client: AsyncClient) -> None:
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    async def test_protocol_is_public(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/protocol")
        body = resp.json()
        assert resp.status_code == 200
        assert body["code"] == 0
        assert body["data"]["rate_display"] == "1.000000000"
        assert body["data"]["liquidation_auction"] == "0xauction"
        assert resp.headers["X-Request-ID"] == body["request_id"]

    async def test_rejections_logged_as_warning(
        self, client: AsyncClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level(logging.INFO, logger="cdp.request")
        await client.get("/api/v1/auctions/9")
        (record,) = [r for r in caplog.records if r.name == "cdp.request"]
        assert record.levelno == logging.WARNING
        assert "/api/v1/auctions/9" in record.getMessage()


class TestAuth:
    async def test_missing_token(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/positions/me")
        assert resp.status_code == 401

    async def test_bad_token(self, client: AsyncClient) -> None:
        resp = await client.get(
            "/api/v1/positions/me", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert resp.status_code == 401

    async def test_admin_endpoint_forbidden(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/admin/pause", headers=ALICE_TOKEN)
        assert resp.status_code == 403
        assert resp.json()["code"] == 1002


class TestPositions:
    async def test_deposit_and_mint(self, client: AsyncClient, db: AsyncMock) -> None:
        await _open_alice(client)
        resp = await client.get("/api/v1/positions/me", headers=ALICE_TOKEN)
        data = resp.json()["data"]
        assert data["debt"] == str(8000 * WAD)
        assert data["health_factor_display"] == "1.250"
        assert data["status"] == "AT_RISK"
        assert db.commit.await_count == 2

    async def test_breaking_health_factor_maps_to_422(
        self, client: AsyncClient, system: CdpSystem
    ) -> None:
        await _open_alice(client)
        resp = await client.post(
            "/api/v1/positions/mint", json={"amount": 5000 * WAD}, headers=ALICE_TOKEN
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 3001
        assert int(resp.json()["data"]["health_factor"]) < WAD
        assert system.engine.get_stable_coin_minted("0xalice") == 8000 * WAD

    async def test_unknown_token(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/positions/deposit",
            json={"token": "0xdoge", "amount": WAD},
            headers=ALICE_TOKEN,
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 2002
        assert resp.json()["data"] == {"token": "0xdoge"}

    async def test_paused(self, client: AsyncClient) -> None:
        await _faucet(client, "0xalice", WAD)
        await client.post("/api/v1/admin/pause", headers=ADMIN_TOKEN)
        resp = await client.post(
            "/api/v1/positions/deposit", json={"token": WETH, "amount": WAD}, headers=ALICE_TOKEN
        )
        assert resp.status_code == 423


class TestLiquidationFlow:
    async def test_liquidate_and_list_auction(self, client: AsyncClient) -> None:
        await _open_alice(client)
        resp = await client.put(
            "/api/v1/admin/feeds/WETH/USD/answer",
            json={"answer": 1500 * 10**8},
            headers=ADMIN_TOKEN,
        )
        assert resp.status_code == 200

        positions = await client.get(
            "/api/v1/liquidations/positions?status=LIQUIDATABLE", headers=BOB_TOKEN
        )
        assert [p["user"] for p in positions.json()["data"]["items"]] == ["0xalice"]

        resp = await client.post(
            "/api/v1/liquidations",
            json={"token": WETH, "user": "0xalice", "debt_to_cover": 4000 * WAD},
            headers=BOB_TOKEN,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["auction_id"] == 0

        auctions = await client.get("/api/v1/auctions")
        item = auctions.json()["data"]["items"][0]
        assert item["status"] == "CREATED"
        assert item["minimum_bid"] == str(3200 * WAD)

    async def test_bid_requires_token(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/auctions/0/bids", json={"amount": WAD})
        assert resp.status_code == 401

    async def test_unknown_auction(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/auctions/9")
        assert resp.status_code == 404
        assert resp.json()["code"] == 5001
