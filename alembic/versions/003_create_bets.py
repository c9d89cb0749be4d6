"""003: create bets table (voter ledger)

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bets (
            id              BIGSERIAL       PRIMARY KEY,
            market_id       VARCHAR(64)     NOT NULL REFERENCES markets (id),
            user_id         VARCHAR(64)     NOT NULL REFERENCES users (id),
            side            VARCHAR(3)      NOT NULL,
            quantity        INTEGER         NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_bets_market_user UNIQUE (market_id, user_id),
            CONSTRAINT ck_bets_side CHECK (side IN ('YES', 'NO')),
            CONSTRAINT ck_bets_quantity_gt_0 CHECK (quantity > 0)
        );
    """)
    op.execute("CREATE INDEX idx_bets_user ON bets (user_id, id);")
    op.execute("COMMENT ON TABLE bets IS 'One bet per (market, user); id order is bet order';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bets CASCADE;")
