"""AccountantClient link persistence (raw SQL)."""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

_LINK_EXISTS_SQL = text("""
    SELECT 1 FROM accountant_clients
    WHERE accountant_id = :accountant_id AND company_id = :company_id
""")

_INSERT_LINK_SQL = text("""
    INSERT INTO accountant_clients (accountant_id, company_id)
    VALUES (:accountant_id, :company_id)
    ON CONFLICT (accountant_id, company_id) DO NOTHING
    RETURNING id
""")

_DELETE_LINK_SQL = text("""
    DELETE FROM accountant_clients
    WHERE accountant_id = :accountant_id AND company_id = :company_id
    RETURNING id
""")

_LINKED_COMPANY_IDS_SQL = text("""
    SELECT company_id FROM accountant_clients
    WHERE accountant_id = :accountant_id
    ORDER BY company_id
""")


class AccessRepository:
    async def is_linked(self, db: AsyncSession, accountant_id: str, company_id: str) -> bool:
        result = await db.execute(
            _LINK_EXISTS_SQL, {"accountant_id": accountant_id, "company_id": company_id}
        )
        return result.first() is not None

    async def link(self, db: AsyncSession, accountant_id: str, company_id: str) -> bool:
        """Returns False when the link already existed."""
        result = await db.execute(
            _INSERT_LINK_SQL, {"accountant_id": accountant_id, "company_id": company_id}
        )
        return result.first() is not None

    async def unlink(self, db: AsyncSession, accountant_id: str, company_id: str) -> bool:
        result = await db.execute(
            _DELETE_LINK_SQL, {"accountant_id": accountant_id, "company_id": company_id}
        )
        return result.first() is not None

    async def linked_company_ids(self, db: AsyncSession, accountant_id: str) -> list[str]:
        result = await db.execute(_LINKED_COMPANY_IDS_SQL, {"accountant_id": accountant_id})
        rows: list[Any] = result.fetchall()
        return [r.company_id for r in rows]
