"""007: create usdc payments

Revision ID: 007
Revises: 006
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE payments (
            id                  VARCHAR(64)     PRIMARY KEY,
            purchase_order_id   VARCHAR(64)     NOT NULL REFERENCES purchase_orders (id),
            tx_hash             VARCHAR(128)    NOT NULL,
            amount_usd          NUMERIC(16,2)   NOT NULL,
            fee_usd             NUMERIC(16,2)   NOT NULL DEFAULT 0,
            network             VARCHAR(32)     NOT NULL DEFAULT 'base',
            token               VARCHAR(16)     NOT NULL DEFAULT 'USDC',
            status              VARCHAR(16)     NOT NULL DEFAULT 'SUBMITTED',
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_payments_order   UNIQUE (purchase_order_id),
            CONSTRAINT ck_payments_amount  CHECK (amount_usd > 0 AND fee_usd >= 0),
            CONSTRAINT ck_payments_status  CHECK (status IN ('SUBMITTED'))
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_payments_updated_at
            BEFORE UPDATE ON payments
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS payments CASCADE;")
