"""CompanyRepository: raw SQL over companies, brokers and accountant users.

asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_company.domain.models import Accountant, Broker, Company

_COMPANY_COLUMNS = """
    id, legal_name, ein, state, contact_email, tax_liability_usd,
    target_close_year, status, verification_status, verification_note, created_at
"""

_BROKER_COLUMNS = "id, name, contact_email, user_id, verification_status, created_at"

_GET_COMPANY_SQL = text(f"SELECT {_COMPANY_COLUMNS} FROM companies WHERE id = :id")

_LIST_COMPANIES_SQL = text(f"""
    SELECT {_COMPANY_COLUMNS}
    FROM companies
    WHERE (CAST(:ids_csv AS TEXT) IS NULL
           OR id = ANY(string_to_array(CAST(:ids_csv AS TEXT), ',')))
      AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
    ORDER BY legal_name
""")

_SET_STATUS_SQL = text(f"""
    UPDATE companies SET status = :status
    WHERE id = :id
    RETURNING {_COMPANY_COLUMNS}
""")

_SET_VERIFICATION_SQL = text(f"""
    UPDATE companies SET verification_status = :status, verification_note = :note
    WHERE id = :id
    RETURNING {_COMPANY_COLUMNS}
""")

_GET_BROKER_SQL = text(f"SELECT {_BROKER_COLUMNS} FROM brokers WHERE id = :id")

_GET_BROKER_BY_USER_SQL = text(f"SELECT {_BROKER_COLUMNS} FROM brokers WHERE user_id = :user_id")

_LIST_BROKERS_SQL = text(f"SELECT {_BROKER_COLUMNS} FROM brokers ORDER BY created_at DESC")

_SET_BROKER_VERIFICATION_SQL = text(f"""
    UPDATE brokers SET verification_status = :status
    WHERE id = :id
    RETURNING {_BROKER_COLUMNS}
""")

_ACCOUNTANT_SELECT = """
    SELECT u.id, u.email, u.name, COUNT(ac.company_id) AS client_count
    FROM users u
    LEFT JOIN accountant_clients ac ON ac.accountant_id = CAST(u.id AS TEXT)
    WHERE u.role = 'ACCOUNTANT'
"""

_GET_ACCOUNTANT_SQL = text(
    _ACCOUNTANT_SELECT + " AND CAST(u.id AS TEXT) = :id GROUP BY u.id, u.email, u.name"
)

_LIST_ACCOUNTANTS_SQL = text(
    _ACCOUNTANT_SELECT + " GROUP BY u.id, u.email, u.name ORDER BY u.email"
)


def _row_to_company(row: Any) -> Company:
    return Company(
        id=row.id,
        legal_name=row.legal_name,
        ein=row.ein,
        state=row.state,
        contact_email=row.contact_email,
        tax_liability_usd=row.tax_liability_usd,
        target_close_year=row.target_close_year,
        status=row.status,
        verification_status=row.verification_status,
        verification_note=row.verification_note,
        created_at=row.created_at,
    )


def _row_to_broker(row: Any) -> Broker:
    return Broker(
        id=row.id,
        name=row.name,
        contact_email=row.contact_email,
        user_id=str(row.user_id) if row.user_id else None,
        verification_status=row.verification_status,
        created_at=row.created_at,
    )


def _row_to_accountant(row: Any) -> Accountant:
    return Accountant(
        id=str(row.id), email=row.email, name=row.name, client_count=int(row.client_count)
    )


class CompanyRepository:
    async def get_company(self, db: AsyncSession, company_id: str) -> Company | None:
        row = (await db.execute(_GET_COMPANY_SQL, {"id": company_id})).fetchone()
        return _row_to_company(row) if row else None

    async def list_companies(
        self,
        db: AsyncSession,
        company_ids: list[str] | None,
        status: str | None,
    ) -> list[Company]:
        if company_ids is not None and not company_ids:
            return []
        result = await db.execute(
            _LIST_COMPANIES_SQL,
            {
                "ids_csv": ",".join(company_ids) if company_ids is not None else None,
                "status": status,
            },
        )
        return [_row_to_company(r) for r in result.fetchall()]

    async def set_status(self, db: AsyncSession, company_id: str, status: str) -> Company | None:
        row = (await db.execute(_SET_STATUS_SQL, {"id": company_id, "status": status})).fetchone()
        return _row_to_company(row) if row else None

    async def set_verification(
        self, db: AsyncSession, company_id: str, status: str, note: str | None
    ) -> Company | None:
        result = await db.execute(
            _SET_VERIFICATION_SQL, {"id": company_id, "status": status, "note": note}
        )
        row = result.fetchone()
        return _row_to_company(row) if row else None

    async def get_broker(self, db: AsyncSession, broker_id: str) -> Broker | None:
        row = (await db.execute(_GET_BROKER_SQL, {"id": broker_id})).fetchone()
        return _row_to_broker(row) if row else None

    async def get_broker_by_user(self, db: AsyncSession, user_id: str) -> Broker | None:
        row = (await db.execute(_GET_BROKER_BY_USER_SQL, {"user_id": user_id})).fetchone()
        return _row_to_broker(row) if row else None

    async def list_brokers(self, db: AsyncSession) -> list[Broker]:
        return [_row_to_broker(r) for r in (await db.execute(_LIST_BROKERS_SQL)).fetchall()]

    async def set_broker_verification(
        self, db: AsyncSession, broker_id: str, status: str
    ) -> Broker | None:
        result = await db.execute(
            _SET_BROKER_VERIFICATION_SQL, {"id": broker_id, "status": status}
        )
        row = result.fetchone()
        return _row_to_broker(row) if row else None

    async def get_accountant(self, db: AsyncSession, user_id: str) -> Accountant | None:
        row = (await db.execute(_GET_ACCOUNTANT_SQL, {"id": user_id})).fetchone()
        return _row_to_accountant(row) if row else None

    async def list_accountants(self, db: AsyncSession) -> list[Accountant]:
        return [
            _row_to_accountant(r) for r in (await db.execute(_LIST_ACCOUNTANTS_SQL)).fetchall()
        ]
