"""005: create holds

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE holds (
            id              VARCHAR(64)     PRIMARY KEY,
            lot_id          VARCHAR(64)     NOT NULL REFERENCES credit_inventory (id),
            company_id      VARCHAR(64)     NOT NULL REFERENCES companies (id),
            amount_usd      NUMERIC(16,2)   NOT NULL,
            status          VARCHAR(16)     NOT NULL DEFAULT 'ACTIVE',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            expires_at      TIMESTAMPTZ     NOT NULL,
            created_by      VARCHAR(64),
            order_id        VARCHAR(64),
            CONSTRAINT ck_holds_amount  CHECK (amount_usd > 0),
            CONSTRAINT ck_holds_status  CHECK (status IN ('ACTIVE', 'EXPIRED', 'CONSUMED', 'CANCELLED')),
            CONSTRAINT ck_holds_expiry  CHECK (expires_at > created_at)
        );
    """)
    op.execute("CREATE INDEX idx_holds_company ON holds (company_id, id DESC);")
    op.execute("CREATE INDEX idx_holds_active_expiry ON holds (expires_at) WHERE status = 'ACTIVE';")
    op.execute("CREATE INDEX idx_holds_lot ON holds (lot_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS holds CASCADE;")
