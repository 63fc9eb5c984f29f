"""009: seed initial data

Revision ID: 009
Revises: 008
Create Date: 2026-10-19
"""

import os
from typing import Sequence, Union

from alembic import op

revision: str = "009"
down_revision: Union[str, None] = "008"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # bcrypt via pgcrypto ($2a$), verified by the bcrypt package at login
    admin_password = os.environ.get("ADMIN_PASSWORD", "ChangeMe_2025")
    op.execute(
        f"""
        INSERT INTO users (email, name, password_hash, role)
        VALUES ('admin@taxcredit.local', 'Admin User',
                crypt('{admin_password.replace("'", "''")}', gen_salt('bf', 12)), 'ADMIN')
        ON CONFLICT (email) DO NOTHING;
        """
    )

    op.execute("""
        INSERT INTO companies (id, legal_name, ein, state, contact_email, tax_liability_usd,
                               target_close_year, verification_status)
        VALUES
            ('CO-SEED-ACME', 'Acme Solar Inc', '12-3456789', 'CA',
             'contact@acmesolar.example', 500000, 2026, 'VERIFIED'),
            ('CO-SEED-GREENTECH', 'GreenTech Manufacturing LLC', '98-7654321', 'TX',
             'info@greentech.example', 750000, 2026, 'VERIFIED')
        ON CONFLICT (id) DO NOTHING;
    """)

    op.execute("""
        INSERT INTO credit_inventory (id, credit_type, tax_year, face_value_usd, available_usd,
                                      min_block_usd, price_per_dollar, jurisdiction, broker_name)
        VALUES
            ('LOT-SEED-0001', 'ITC', 2025, 500000, 500000, 5000, 0.8500, 'Federal', 'Platform'),
            ('LOT-SEED-0002', 'PTC', 2025, 250000, 250000, 10000, 0.9000, 'Federal', 'Platform'),
            ('LOT-SEED-0003', '45Q', 2026, 1000000, 1000000, 25000, 0.8800, 'Federal', 'Platform')
        ON CONFLICT (id) DO NOTHING;
    """)


def downgrade() -> None:
    op.execute("DELETE FROM credit_inventory WHERE id LIKE 'LOT-SEED-%';")
    op.execute("DELETE FROM companies WHERE id LIKE 'CO-SEED-%';")
    op.execute("DELETE FROM users WHERE email = 'admin@taxcredit.local';")
