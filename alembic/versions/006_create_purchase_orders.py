"""006: create purchase orders

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE purchase_orders (
            id                       VARCHAR(64)     PRIMARY KEY,
            lot_id                   VARCHAR(64)     NOT NULL REFERENCES credit_inventory (id),
            company_id               VARCHAR(64)     NOT NULL REFERENCES companies (id),
            amount_usd               NUMERIC(16,2)   NOT NULL,
            price_per_dollar         NUMERIC(6,4)    NOT NULL,
            subtotal_usd             NUMERIC(16,2)   NOT NULL,
            fees_usd                 NUMERIC(16,2)   NOT NULL,
            total_usd                NUMERIC(16,2)   NOT NULL,
            payment_status           VARCHAR(20)     NOT NULL DEFAULT 'PENDING_PAYMENT',
            broker_status            VARCHAR(16)     NOT NULL DEFAULT 'PENDING',
            hold_id                  VARCHAR(64)     REFERENCES holds (id),
            stripe_session_id        VARCHAR(255),
            broker_package_ref       VARCHAR(512),
            closing_certificate_ref  VARCHAR(512),
            created_by               VARCHAR(64),
            created_at               TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at               TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_po_amount   CHECK (amount_usd > 0),
            CONSTRAINT ck_po_price    CHECK (price_per_dollar > 0 AND price_per_dollar <= 1),
            CONSTRAINT ck_po_total    CHECK (total_usd = subtotal_usd + fees_usd),
            CONSTRAINT ck_po_payment  CHECK (payment_status IN (
                'PENDING_PAYMENT', 'PROCESSING', 'PAID', 'PAID_TEST', 'CANCELED', 'FAILED', 'REFUNDED'
            )),
            CONSTRAINT ck_po_broker   CHECK (broker_status IN ('PENDING', 'APPROVED', 'NEEDS_INFO', 'REJECTED')),
            CONSTRAINT uq_po_hold     UNIQUE (hold_id)
        );
    """)
    op.execute("CREATE INDEX idx_po_company ON purchase_orders (company_id, id DESC);")
    op.execute("CREATE INDEX idx_po_lot ON purchase_orders (lot_id, payment_status);")
    op.execute("""
        CREATE TRIGGER trg_po_updated_at
            BEFORE UPDATE ON purchase_orders
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS purchase_orders CASCADE;")
