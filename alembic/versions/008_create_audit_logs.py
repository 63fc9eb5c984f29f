"""008: create audit logs

Revision ID: 008
Revises: 007
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op

revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE audit_logs (
            id            BIGSERIAL       PRIMARY KEY,
            timestamp     TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            actor_id      VARCHAR(64),
            actor_email   VARCHAR(255),
            action        VARCHAR(32)     NOT NULL,
            entity        VARCHAR(32)     NOT NULL,
            entity_id     VARCHAR(64),
            company_id    VARCHAR(64),
            amount_usd    NUMERIC(16,2),
            details       JSONB,
            ip            VARCHAR(64)
        );
    """)
    op.execute("CREATE INDEX idx_audit_timestamp ON audit_logs (timestamp);")
    op.execute("CREATE INDEX idx_audit_action ON audit_logs (action, timestamp);")
    op.execute("CREATE INDEX idx_audit_entity ON audit_logs (entity, entity_id);")
    op.execute("COMMENT ON TABLE audit_logs IS 'Append-only; rows are never updated or deleted';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS audit_logs CASCADE;")
