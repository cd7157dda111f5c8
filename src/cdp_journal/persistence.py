"""Event journal — append-only persistence of ledger events.

Writes run inside the caller's transaction; CdpSystem.execute() commits
them together with the in-memory request.
"""

import json

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cdp_common.enums import EventType
from src.cdp_common.events import LedgerEvent
from src.cdp_journal.infrastructure.db_models import LedgerEventORM

_MAX_SEQUENCE_SQL = text("SELECT COALESCE(MAX(sequence), 0) FROM ledger_events")

_INSERT_EVENT_SQL = text("""
    INSERT INTO ledger_events (sequence, event_type, payload, block_time)
    VALUES (:sequence, :event_type, CAST(:payload AS JSONB), :block_time)
""")


async def write_events(events: list[LedgerEvent], db: AsyncSession) -> None:
    """Insert one row per event within the caller's transaction."""
    if not events:
        return
    await db.execute(
        _INSERT_EVENT_SQL,
        [
            {
                "sequence": e.sequence,
                "event_type": e.event_type.value,
                "payload": json.dumps(e.payload),
                "block_time": e.block_time,
            }
            for e in events
        ],
    )


async def max_sequence(db: AsyncSession) -> int:
    """Highest journaled sequence, or 0 for an empty journal."""
    result = await db.execute(_MAX_SEQUENCE_SQL)
    return int(result.scalar_one())

async def list_events(
    db: AsyncSession,
    event_type: EventType | None = None,
    before_id: int | None = None,
    limit: int = 50,
) -> list[LedgerEventORM]:
    """Newest first, keyset-paginated on id."""
    stmt = select(LedgerEventORM).order_by(LedgerEventORM.id.desc()).limit(limit)
    if event_type is not None:
        stmt = stmt.where(LedgerEventORM.event_type == event_type.value)
    if before_id is not None:
        stmt = stmt.where(LedgerEventORM.id < before_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())
