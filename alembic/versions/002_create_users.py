"""002: create users table

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
    op.execute("""
        CREATE TABLE users (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            email           VARCHAR(255)    NOT NULL,
            name            VARCHAR(128),
            password_hash   VARCHAR(255)    NOT NULL,
            role            VARCHAR(16)     NOT NULL,
            company_id      VARCHAR(64),
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_users_email   UNIQUE (email),
            CONSTRAINT ck_users_role    CHECK (role IN ('ADMIN', 'COMPANY', 'ACCOUNTANT', 'BROKER')),
            CONSTRAINT ck_users_company CHECK (role = 'COMPANY' OR company_id IS NULL)
        );
    """)
    op.execute("CREATE INDEX idx_users_role ON users (role);")
    op.execute("""
        CREATE TRIGGER trg_users_updated_at
            BEFORE UPDATE ON users
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE users IS 'Platform users: admins, company buyers, accountants, brokers';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS users CASCADE;")
