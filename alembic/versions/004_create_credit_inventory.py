"""004: create credit inventory

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE credit_inventory (
            id                  VARCHAR(64)     PRIMARY KEY,
            credit_type         VARCHAR(8)      NOT NULL,
            tax_year            INTEGER         NOT NULL,
            face_value_usd      NUMERIC(16,2)   NOT NULL,
            available_usd       NUMERIC(16,2)   NOT NULL,
            min_block_usd       NUMERIC(16,2)   NOT NULL DEFAULT 0,
            price_per_dollar    NUMERIC(6,4)    NOT NULL,
            status              VARCHAR(16)     NOT NULL DEFAULT 'ACTIVE',
            jurisdiction        VARCHAR(64),
            state_restriction   VARCHAR(64),
            close_by            DATE,
            broker_id           VARCHAR(64)     REFERENCES brokers (id),
            broker_name         VARCHAR(255),
            notes               TEXT,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_inventory_type      CHECK (credit_type IN ('ITC', 'PTC', '45Q', '48C', '48E', 'OTHER')),
            CONSTRAINT ck_inventory_status    CHECK (status IN ('ACTIVE', 'INACTIVE')),
            CONSTRAINT ck_inventory_face      CHECK (face_value_usd > 0),
            CONSTRAINT ck_inventory_available CHECK (available_usd >= 0 AND available_usd <= face_value_usd),
            CONSTRAINT ck_inventory_min_block CHECK (min_block_usd >= 0),
            CONSTRAINT ck_inventory_price     CHECK (price_per_dollar > 0 AND price_per_dollar <= 1)
        );
    """)
    op.execute("CREATE INDEX idx_inventory_status ON credit_inventory (status, credit_type, tax_year);")
    op.execute("CREATE INDEX idx_inventory_broker ON credit_inventory (broker_id);")
    op.execute("""
        CREATE TRIGGER trg_inventory_updated_at
            BEFORE UPDATE ON credit_inventory
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON COLUMN credit_inventory.available_usd IS "
        "'Face value not held or sold; only moved by conditional UPDATE';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS credit_inventory CASCADE;")
