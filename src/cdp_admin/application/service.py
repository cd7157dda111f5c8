"""Admin application service.

Parameter setters, pause switch, development price feeds and collateral
faucet and the event journal query. Authorization is enforced
twice: require_admin at the HTTP edge and the admin check inside the engine.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.cdp_common.enums import EventType
from src.cdp_common.response import stringify_amounts
from src.cdp_journal.persistence import list_events
from src.cdp_system.system import CdpSystem


class AdminService:
    async def pause(self, system: CdpSystem, db: AsyncSession, caller: str) -> dict[str, Any]:
        await system.execute(db, lambda: system.engine.pause(caller))
        return {"paused": True}

    async def unpause(self, system: CdpSystem, db: AsyncSession, caller: str) -> dict[str, Any]:
        await system.execute(db, lambda: system.engine.unpause(caller))
        return {"paused": False}

    async def set_liquidation_threshold(
        self, system: CdpSystem, db: AsyncSession, caller: str, value: int
    ) -> dict[str, Any]:
        await system.execute(db, lambda: system.engine.set_liquidation_threshold(caller, value))
        return {"liquidation_threshold": system.engine.state.risk.liquidation_threshold}

    async def set_liquidation_bonus(
        self, system: CdpSystem, db: AsyncSession, caller: str, value: int
    ) -> dict[str, Any]:
        await system.execute(db, lambda: system.engine.set_liquidation_bonus(caller, value))
        return {"liquidation_bonus": system.engine.state.risk.liquidation_bonus}

    async def set_fee_sensitivity(
        self, system: CdpSystem, db: AsyncSession, caller: str, below_peg: int, above_peg: int
    ) -> dict[str, Any]:
        await system.execute(
            db, lambda: system.engine.set_fee_sensitivity(caller, below_peg, above_peg)
        )
        return self._fee_params(system)

    async def set_fee_caps(
        self, system: CdpSystem, db: AsyncSession, caller: str, min_fee_bps: int, max_fee_bps: int
    ) -> dict[str, Any]:
        await system.execute(
            db, lambda: system.engine.set_fee_caps(caller, min_fee_bps, max_fee_bps)
        )
        return self._fee_params(system)

    async def set_base_fee(
        self, system: CdpSystem, db: AsyncSession, caller: str, base_fee_bps: int
    ) -> dict[str, Any]:
        await system.execute(db, lambda: system.engine.set_base_fee(caller, base_fee_bps))
        return self._fee_params(system)

    async def set_feed_answer(
        self, system: CdpSystem, db: AsyncSession, feed_id: str, answer: int
    ) -> dict[str, Any]:
        feed = system.feed(feed_id)
        await system.execute(db, lambda: feed.set_answer(answer))
        return {
            "feed_id": feed_id,
            "answer": str(feed.state.answer),
            "decimals": feed.decimals,
            "updated_at": feed.state.updated_at,
        }

    async def faucet(
        self, system: CdpSystem, db: AsyncSession, caller: str, token: str, to: str, amount: int
    ) -> dict[str, Any]:
        collateral = system.engine.collateral_token(token)
        await system.execute(db, lambda: collateral.mint(caller, to, amount))
        return {"token": token, "to": to, "balance": str(collateral.balance_of(to))}

    async def list_events(
        self,
        db: AsyncSession,
        event_type: EventType | None,
        before_id: int | None,
        limit: int,
    ) -> dict[str, Any]:
        rows = await list_events(db, event_type, before_id, limit)
        items = [
            {
                "id": row.id,
                "sequence": row.sequence,
                "event_type": row.event_type,
                "block_time": row.block_time,
                "payload": stringify_amounts(row.payload),
            }
            for row in rows
        ]
        return {
            "items": items,
            "next_before_id": items[-1]["id"] if len(items) == limit else None,
        }

    @staticmethod
    def _fee_params(system: CdpSystem) -> dict[str, Any]:
        params = system.rate_ledger.fee_params
        return {
            "base_fee_bps": params.base_fee_bps,
            "min_fee_bps": params.min_fee_bps,
            "max_fee_bps": params.max_fee_bps,
            "sensitivity_below_peg": params.sensitivity_below_peg,
            "sensitivity_above_peg": params.sensitivity_above_peg,
        }
