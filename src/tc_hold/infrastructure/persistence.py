"""HoldRepository: raw SQL over holds.

State changes only ever leave ACTIVE, so transition() is conditional on the
current status and returns None if another transaction got there first.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_hold.domain.models import Hold

_COLUMNS = "id, lot_id, company_id, amount_usd, status, created_at, expires_at, created_by, order_id"

_INSERT_SQL = text(f"""
    INSERT INTO holds (id, lot_id, company_id, amount_usd, status, created_at, expires_at, created_by)
    VALUES (:id, :lot_id, :company_id, :amount_usd, :status, :created_at, :expires_at, :created_by)
    RETURNING {_COLUMNS}
""")

_GET_SQL = text(f"SELECT {_COLUMNS} FROM holds WHERE id = :id")

_GET_FOR_UPDATE_SQL = text(f"SELECT {_COLUMNS} FROM holds WHERE id = :id FOR UPDATE")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM holds
    WHERE (CAST(:ids_csv AS TEXT) IS NULL
           OR company_id = ANY(string_to_array(CAST(:ids_csv AS TEXT), ',')))
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < CAST(:cursor_id AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

_TRANSITION_SQL = text(f"""
    UPDATE holds
    SET status = :new_status,
        order_id = COALESCE(CAST(:order_id AS TEXT), order_id)
    WHERE id = :id AND status = 'ACTIVE'
    RETURNING {_COLUMNS}
""")

# SKIP LOCKED: a concurrent sweep or a checkout consuming the hold wins the row
_LOCK_LAPSED_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM holds
    WHERE status = 'ACTIVE' AND expires_at < :now
    ORDER BY expires_at
    LIMIT :limit
    FOR UPDATE SKIP LOCKED
""")


def _row_to_hold(row: Any) -> Hold:
    return Hold(
        id=row.id,
        lot_id=row.lot_id,
        company_id=row.company_id,
        amount_usd=row.amount_usd,
        status=row.status,
        created_at=row.created_at,
        expires_at=row.expires_at,
        created_by=row.created_by,
        order_id=row.order_id,
    )


class HoldRepository:
    async def insert(self, db: AsyncSession, hold: Hold) -> Hold:
        row = (
            await db.execute(
                _INSERT_SQL,
                {
                    "id": hold.id,
                    "lot_id": hold.lot_id,
                    "company_id": hold.company_id,
                    "amount_usd": hold.amount_usd,
                    "status": hold.status,
                    "created_at": hold.created_at,
                    "expires_at": hold.expires_at,
                    "created_by": hold.created_by,
                },
            )
        ).fetchone()
        assert row is not None
        return _row_to_hold(row)

    async def get(self, db: AsyncSession, hold_id: str, for_update: bool = False) -> Hold | None:
        sql = _GET_FOR_UPDATE_SQL if for_update else _GET_SQL
        row = (await db.execute(sql, {"id": hold_id})).fetchone()
        return _row_to_hold(row) if row else None

    async def list_holds(
        self,
        db: AsyncSession,
        company_ids: list[str] | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Hold]:
        if company_ids is not None and not company_ids:
            return []
        result = await db.execute(
            _LIST_SQL,
            {
                "ids_csv": ",".join(company_ids) if company_ids is not None else None,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_hold(r) for r in result.fetchall()]

    async def transition(
        self,
        db: AsyncSession,
        hold_id: str,
        new_status: str,
        order_id: str | None = None,
    ) -> Hold | None:
        result = await db.execute(
            _TRANSITION_SQL, {"id": hold_id, "new_status": new_status, "order_id": order_id}
        )
        row = result.fetchone()
        return _row_to_hold(row) if row else None

    async def lock_lapsed(self, db: AsyncSession, now: datetime, limit: int) -> list[Hold]:
        result = await db.execute(_LOCK_LAPSED_SQL, {"now": now, "limit": limit})
        return [_row_to_hold(r) for r in result.fetchall()]
