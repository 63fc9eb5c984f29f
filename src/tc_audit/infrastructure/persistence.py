"""AuditRepository: append-only access to audit_logs.

There is deliberately no UPDATE or DELETE statement here: rows are immutable
once written.
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_audit.domain.models import AuditEntry, AuditFilter
from src.tc_common.errors import InternalError

_COLUMNS = """
    id, timestamp, actor_id, actor_email, action, entity, entity_id,
    company_id, amount_usd, details, ip
"""

_INSERT_SQL = text(f"""
    INSERT INTO audit_logs
        (actor_id, actor_email, action, entity, entity_id,
         company_id, amount_usd, details, ip)
    VALUES
        (:actor_id, :actor_email, :action, :entity, :entity_id,
         :company_id, :amount_usd, CAST(:details AS JSONB), :ip)
    RETURNING {_COLUMNS}
""")

_QUERY_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM audit_logs
    WHERE (CAST(:date_from AS TIMESTAMPTZ) IS NULL OR timestamp >= CAST(:date_from AS TIMESTAMPTZ))
      AND (CAST(:date_to AS TIMESTAMPTZ) IS NULL OR timestamp <= CAST(:date_to AS TIMESTAMPTZ))
      AND (CAST(:actions_csv AS TEXT) IS NULL
           OR action = ANY(string_to_array(CAST(:actions_csv AS TEXT), ',')))
      AND (CAST(:entities_csv AS TEXT) IS NULL
           OR entity = ANY(string_to_array(CAST(:entities_csv AS TEXT), ',')))
      AND (CAST(:q AS TEXT) IS NULL
           OR actor_email ILIKE '%' || CAST(:q AS TEXT) || '%'
           OR entity_id ILIKE '%' || CAST(:q AS TEXT) || '%'
           OR ip LIKE '%' || CAST(:q AS TEXT) || '%')
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
    ORDER BY id DESC
    LIMIT :limit
""")

_RANGE_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM audit_logs
    WHERE timestamp >= :date_from AND timestamp <= :date_to
    ORDER BY id
""")


def _row_to_entry(row: Any) -> AuditEntry:
    details = row.details
    if isinstance(details, str):
        details = json.loads(details)
    return AuditEntry(
        id=row.id,
        timestamp=row.timestamp,
        actor_id=row.actor_id,
        actor_email=row.actor_email,
        action=row.action,
        entity=row.entity,
        entity_id=row.entity_id,
        company_id=row.company_id,
        amount_usd=row.amount_usd,
        details=details,
        ip=row.ip,
    )


def _csv(values: list[str]) -> str | None:
    return ",".join(values) if values else None


class AuditRepository:
    async def insert(
        self,
        db: AsyncSession,
        *,
        actor_id: str | None,
        actor_email: str | None,
        action: str,
        entity: str,
        entity_id: str | None,
        details: dict[str, Any] | None,
        company_id: str | None,
        amount_usd: Decimal | None,
        ip: str | None,
    ) -> AuditEntry:
        result = await db.execute(
            _INSERT_SQL,
            {
                "actor_id": actor_id,
                "actor_email": actor_email,
                "action": action,
                "entity": entity,
                "entity_id": entity_id,
                "company_id": company_id,
                "amount_usd": amount_usd,
                "details": json.dumps(details, default=str) if details is not None else None,
                "ip": ip,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Audit insert returned no rows")
        return _row_to_entry(row)

    async def query(
        self,
        db: AsyncSession,
        flt: AuditFilter,
        cursor_id: int | None,
        limit: int,
    ) -> list[AuditEntry]:
        result = await db.execute(
            _QUERY_SQL,
            {
                "date_from": flt.date_from,
                "date_to": flt.date_to,
                "actions_csv": _csv(flt.actions),
                "entities_csv": _csv(flt.entities),
                "q": flt.q or None,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_entry(r) for r in result.fetchall()]

    async def list_range(
        self, db: AsyncSession, date_from: datetime, date_to: datetime
    ) -> list[AuditEntry]:
        result = await db.execute(_RANGE_SQL, {"date_from": date_from, "date_to": date_to})
        return [_row_to_entry(r) for r in result.fetchall()]
