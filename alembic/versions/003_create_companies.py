"""003: create companies, brokers and accountant links

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
        CREATE TABLE companies (
            id                   VARCHAR(64)     PRIMARY KEY,
            legal_name           VARCHAR(255)    NOT NULL,
            ein                  VARCHAR(10)     NOT NULL,
            state                VARCHAR(2)      NOT NULL,
            contact_email        VARCHAR(255),
            tax_liability_usd    NUMERIC(16,2),
            target_close_year    INTEGER,
            status               VARCHAR(16)     NOT NULL DEFAULT 'ACTIVE',
            verification_status  VARCHAR(16)     NOT NULL DEFAULT 'PENDING',
            verification_note    TEXT,
            created_at           TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at           TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_companies_ein       UNIQUE (ein),
            CONSTRAINT ck_companies_ein       CHECK (ein ~ '^[0-9]{2}-[0-9]{7}$'),
            CONSTRAINT ck_companies_status    CHECK (status IN ('ACTIVE', 'ARCHIVED', 'BLOCKED')),
            CONSTRAINT ck_companies_verif     CHECK (verification_status IN ('PENDING', 'VERIFIED', 'REJECTED')),
            CONSTRAINT ck_companies_liability CHECK (tax_liability_usd IS NULL OR tax_liability_usd >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_companies_updated_at
            BEFORE UPDATE ON companies
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)

    op.execute("""
        CREATE TABLE brokers (
            id                   VARCHAR(64)     PRIMARY KEY,
            name                 VARCHAR(255)    NOT NULL,
            contact_email        VARCHAR(255),
            user_id              VARCHAR(64),
            verification_status  VARCHAR(16)     NOT NULL DEFAULT 'PENDING',
            created_at           TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_brokers_user   UNIQUE (user_id),
            CONSTRAINT ck_brokers_verif  CHECK (verification_status IN ('PENDING', 'VERIFIED', 'REJECTED'))
        );
    """)

    op.execute("""
        CREATE TABLE accountant_clients (
            id              SERIAL          PRIMARY KEY,
            accountant_id   VARCHAR(64)     NOT NULL,
            company_id      VARCHAR(64)     NOT NULL REFERENCES companies (id) ON DELETE CASCADE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_accountant_clients UNIQUE (accountant_id, company_id)
        );
    """)
    op.execute("CREATE INDEX idx_accountant_clients_company ON accountant_clients (company_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS accountant_clients CASCADE;")
    op.execute("DROP TABLE IF EXISTS brokers CASCADE;")
    op.execute("DROP TABLE IF EXISTS companies CASCADE;")
