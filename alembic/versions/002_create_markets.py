"""002: create markets table and market id sequence

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE SEQUENCE market_id_seq START WITH 1 INCREMENT BY 1;")
    # creator_id is not a foreign key: unregistered callers may create markets.
    op.execute("""
        CREATE TABLE markets (
            id              VARCHAR(64)         PRIMARY KEY,
            creator_id      VARCHAR(64)         NOT NULL,
            question        TEXT                NOT NULL,
            num_yes         INTEGER             NOT NULL DEFAULT 0,
            num_no          INTEGER             NOT NULL DEFAULT 0,
            liquidity       DOUBLE PRECISION    NOT NULL,
            resolved        BOOLEAN             NOT NULL DEFAULT FALSE,
            outcome         VARCHAR(3),
            created_at      TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            resolved_at     TIMESTAMPTZ,
            updated_at      TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_markets_liquidity_gt_0 CHECK (liquidity > 0),
            CONSTRAINT ck_markets_counts_gte_0 CHECK (num_yes >= 0 AND num_no >= 0),
            CONSTRAINT ck_markets_outcome CHECK (outcome IS NULL OR outcome IN ('YES', 'NO')),
            CONSTRAINT ck_markets_resolved_outcome CHECK (resolved = (outcome IS NOT NULL))
        );
    """)
    op.execute("CREATE INDEX idx_markets_creator ON markets (creator_id);")
    op.execute("""
        CREATE TRIGGER trg_markets_updated_at
            BEFORE UPDATE ON markets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE markets IS 'Binary YES/NO markets, Open until resolved';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS markets CASCADE;")
    op.execute("DROP SEQUENCE IF EXISTS market_id_seq;")
