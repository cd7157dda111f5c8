"""001: create ledger_events table

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE ledger_events (
            id              BIGSERIAL       PRIMARY KEY,
            sequence        BIGINT          NOT NULL,
            event_type      VARCHAR(40)     NOT NULL,
            payload         JSONB           NOT NULL,
            block_time      BIGINT          NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_ledger_events_sequence UNIQUE (sequence),
            CONSTRAINT ck_ledger_event_type CHECK (
                event_type IN (
                    'COLLATERAL_DEPOSITED',
                    'COLLATERAL_REDEEMED',
                    'STABLE_COIN_MINTED',
                    'STABLE_COIN_BURNED',
                    'FEE_ACCRUED',
                    'LIQUIDATION_STARTED',
                    'LIQUIDATION_SETTLED',
                    'BAD_DEBT_SOCIALIZED',
                    'AUCTION_CREATED',
                    'BID_PLACED',
                    'BID_REFUNDED',
                    'AUCTION_SETTLED',
                    'PARAMETER_UPDATED',
                    'AUCTION_MODULE_CONFIGURED',
                    'PAUSED',
                    'UNPAUSED',
                    'PRICE_ACCEPTED',
                    'CIRCUIT_BREAKER_TRIPPED'
                )
            )
        );
    """)
    op.execute("CREATE INDEX idx_ledger_events_type ON ledger_events (event_type, id DESC);")
    op.execute("CREATE INDEX idx_ledger_events_user ON ledger_events USING GIN ((payload->'user'));")
    op.execute("COMMENT ON TABLE ledger_events IS 'Append-only journal of CDP engine events';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ledger_events CASCADE;")
