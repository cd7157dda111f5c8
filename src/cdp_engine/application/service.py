"""EngineApplicationService — thin composition layer over CdpEngine.

Mutating operations run through CdpSystem.execute(): serialized, atomic and
journaled in the caller's DB session. Views run through CdpSystem.read().
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.cdp_common.enums import PositionStatus
from src.cdp_common.fixed_point import health_factor_to_display
from src.cdp_engine.application.schemas import (
    AccountResponse,
    BurnAndRedeemRequest,
    CollateralRequest,
    CollateralTypeResponse,
    DepositAndMintRequest,
    FeedPokeResponse,
    HealthFactorResponse,
    LiquidateRequest,
    LiquidationResponse,
    PositionListResponse,
    ProtocolResponse,
    StableCoinRequest,
    rate_to_display,
)
from src.cdp_engine.domain.health import classify_health_factor
from src.cdp_system.system import CdpSystem


class EngineApplicationService:
    # --- Position accounting ---

    async def deposit(
        self, system: CdpSystem, db: AsyncSession, caller: str, body: CollateralRequest
    ) -> AccountResponse:
        await system.execute(
            db, lambda: system.engine.deposit_collateral(caller, body.token, body.amount)
        )
        return await self.get_account(system, caller)

    async def redeem(
        self, system: CdpSystem, db: AsyncSession, caller: str, body: CollateralRequest
    ) -> AccountResponse:
        await system.execute(
            db, lambda: system.engine.redeem_collateral(caller, body.token, body.amount)
        )
        return await self.get_account(system, caller)

    async def mint(
        self, system: CdpSystem, db: AsyncSession, caller: str, body: StableCoinRequest
    ) -> AccountResponse:
        await system.execute(db, lambda: system.engine.mint_stable_coin(caller, body.amount))
        return await self.get_account(system, caller)

    async def burn(
        self, system: CdpSystem, db: AsyncSession, caller: str, body: StableCoinRequest
    ) -> AccountResponse:
        await system.execute(db, lambda: system.engine.burn_stable_coin(caller, body.amount))
        return await self.get_account(system, caller)

    async def deposit_and_mint(
        self, system: CdpSystem, db: AsyncSession, caller: str, body: DepositAndMintRequest
    ) -> AccountResponse:
        await system.execute(
            db,
            lambda: system.engine.deposit_collateral_and_mint(
                caller, body.token, body.amount_collateral, body.amount_to_mint
            ),
        )
        return await self.get_account(system, caller)

    async def burn_and_redeem(
        self, system: CdpSystem, db: AsyncSession, caller: str, body: BurnAndRedeemRequest
    ) -> AccountResponse:
        await system.execute(
            db,
            lambda: system.engine.burn_and_redeem(
                caller, body.token, body.amount_collateral, body.amount_to_burn
            ),
        )
        return await self.get_account(system, caller)

    async def get_account(self, system: CdpSystem, user: str) -> AccountResponse:
        snapshot = await system.read(lambda: system.monitor.snapshot(user))
        return AccountResponse.from_snapshot(snapshot)

    async def get_health_factor(self, system: CdpSystem, user: str) -> HealthFactorResponse:
        health_factor = await system.read(lambda: system.engine.get_health_factor(user))
        return HealthFactorResponse(
            user=user,
            health_factor=str(health_factor),
            health_factor_display=health_factor_to_display(health_factor),
            status=classify_health_factor(health_factor).value,
        )

    # --- Liquidation ---

    async def liquidate(
        self, system: CdpSystem, db: AsyncSession, caller: str, body: LiquidateRequest
    ) -> LiquidationResponse:
        def _liquidate() -> LiquidationResponse:
            auction_id = system.engine.liquidate(
                caller, body.token, body.user, body.debt_to_cover
            )
            auction = system.auctions.get_auction(auction_id)
            return LiquidationResponse(
                auction_id=auction_id,
                user=auction.user,
                token=auction.token,
                debt_to_cover=str(auction.target_debt),
                collateral_seized=str(auction.collateral_amount),
            )

        return await system.execute(db, _liquidate)

    async def list_positions(
        self, system: CdpSystem, status: PositionStatus | None
    ) -> PositionListResponse:
        snapshots = await system.read(lambda: system.monitor.list_positions(status))
        items = [AccountResponse.from_snapshot(s) for s in snapshots]
        return PositionListResponse(items=items, total=len(items))

    # --- Protocol ---

    async def get_protocol(self, system: CdpSystem) -> ProtocolResponse:
        return await system.read(lambda: self._protocol_view(system))

    @staticmethod
    def _protocol_view(system: CdpSystem) -> ProtocolResponse:
        engine = system.engine
        ledger = system.rate_ledger.state
        risk = engine.state.risk
        auction = engine.liquidation_auction
        rate = engine.get_rate()
        return ProtocolResponse(
            rate=str(rate),
            rate_display=rate_to_display(rate),
            current_fee_bps=ledger.current_fee_bps,
            target_fee_bps=engine.get_current_stability_fee_bps(),
            last_accrual_time=ledger.last_accrual_time,
            total_normalized_debt=str(ledger.total_normalized_debt),
            protocol_reserve=str(engine.get_protocol_reserve()),
            protocol_bad_debt=str(engine.get_protocol_bad_debt()),
            stable_coin_supply=str(system.stable_coin.total_supply),
            paused=engine.state.paused,
            liquidation_threshold=risk.liquidation_threshold,
            liquidation_bonus=risk.liquidation_bonus,
            liquidation_auction=auction.address if auction is not None else None,
            collateral_types=[
                CollateralTypeResponse(token=c.token, symbol=c.symbol, feed_id=c.feed_id)
                for c in engine.get_collateral_tokens()
            ],
        )

    async def poke_feed(
        self, system: CdpSystem, db: AsyncSession, feed_id: str
    ) -> FeedPokeResponse:
        accepted = await system.execute(db, lambda: system.oracle.poke(feed_id))
        state = system.oracle.feed_state(feed_id)
        return FeedPokeResponse(
            feed_id=feed_id,
            accepted=accepted,
            last_price=str(state.last_price),
            breaker_open_until=state.breaker_open_until,
        )
