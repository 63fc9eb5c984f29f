"""InventoryRepository: raw SQL over credit_inventory.

Balance mutations are single conditional UPDATE ... RETURNING statements: the
availability re-check and the write happen in one step under the row lock, so
concurrent holds/orders on a lot serialize and can never over-allocate.
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
"""

from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_common.enums import RELEASED_PAYMENT_STATUSES, HoldStatus, LotStatus
from src.tc_common.errors import (
    InsufficientInventoryError,
    InventoryInvariantError,
    LotNotActiveError,
    LotNotFoundError,
)
from src.tc_common.money import ZERO
from src.tc_inventory.domain.models import CreditLot, LotInvariantRow

_COLUMNS = """
    id, credit_type, tax_year, face_value_usd, available_usd, min_block_usd,
    price_per_dollar, status, jurisdiction, state_restriction, close_by,
    broker_id, broker_name, notes, created_at, updated_at
"""

_GET_SQL = text(f"SELECT {_COLUMNS} FROM credit_inventory WHERE id = :id")

_GET_FOR_UPDATE_SQL = text(f"SELECT {_COLUMNS} FROM credit_inventory WHERE id = :id FOR UPDATE")

_DECREMENT_SQL = text(f"""
    UPDATE credit_inventory
    SET available_usd = available_usd - :amount
    WHERE id = :id AND status = 'ACTIVE' AND available_usd >= :amount
    RETURNING {_COLUMNS}
""")

_INCREMENT_SQL = text(f"""
    UPDATE credit_inventory
    SET available_usd = available_usd + :amount
    WHERE id = :id AND available_usd + :amount <= face_value_usd
    RETURNING {_COLUMNS}
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM credit_inventory
    WHERE (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
      AND (CAST(:credit_type AS TEXT) IS NULL OR credit_type = CAST(:credit_type AS TEXT))
      AND (CAST(:tax_year AS INTEGER) IS NULL OR tax_year = CAST(:tax_year AS INTEGER))
      AND (CAST(:broker_id AS TEXT) IS NULL OR broker_id = CAST(:broker_id AS TEXT))
      AND (CAST(:only_available AS BOOLEAN) = FALSE OR available_usd > 0)
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < CAST(:cursor_id AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

_EXPORT_SQL = text(f"SELECT {_COLUMNS} FROM credit_inventory ORDER BY created_at DESC, id DESC")

_INSERT_SQL = text(f"""
    INSERT INTO credit_inventory
        (id, credit_type, tax_year, face_value_usd, available_usd, min_block_usd,
         price_per_dollar, status, jurisdiction, state_restriction, close_by,
         broker_id, broker_name, notes)
    VALUES
        (:id, :credit_type, :tax_year, :face_value_usd, :available_usd, :min_block_usd,
         :price_per_dollar, :status, :jurisdiction, :state_restriction, :close_by,
         :broker_id, :broker_name, :notes)
    RETURNING {_COLUMNS}
""")

_SAVE_SQL = text(f"""
    UPDATE credit_inventory
    SET credit_type = :credit_type,
        tax_year = :tax_year,
        face_value_usd = :face_value_usd,
        available_usd = :available_usd,
        min_block_usd = :min_block_usd,
        price_per_dollar = :price_per_dollar,
        status = :status,
        jurisdiction = :jurisdiction,
        state_restriction = :state_restriction,
        close_by = :close_by,
        broker_name = :broker_name,
        notes = :notes
    WHERE id = :id
    RETURNING {_COLUMNS}
""")

_HAS_REFERENCES_SQL = text("""
    SELECT EXISTS (SELECT 1 FROM purchase_orders WHERE lot_id = :id)
        OR EXISTS (SELECT 1 FROM holds WHERE lot_id = :id) AS referenced
""")

_DELETE_SQL = text("DELETE FROM credit_inventory WHERE id = :id")

_INVARIANT_SQL = text("""
    SELECT
        ci.id AS lot_id,
        ci.face_value_usd,
        ci.available_usd,
        COALESCE((SELECT SUM(h.amount_usd) FROM holds h
                  WHERE h.lot_id = ci.id AND h.status = :hold_active), 0) AS active_holds_usd,
        COALESCE((SELECT SUM(po.amount_usd) FROM purchase_orders po
                  WHERE po.lot_id = ci.id
                    AND NOT (po.payment_status = ANY(string_to_array(CAST(:released_csv AS TEXT), ',')))),
                 0) AS live_orders_usd
    FROM credit_inventory ci
    WHERE (CAST(:lot_id AS TEXT) IS NULL OR ci.id = CAST(:lot_id AS TEXT))
    ORDER BY ci.id
""")


def _row_to_lot(row: Any) -> CreditLot:
    return CreditLot(
        id=row.id,
        credit_type=row.credit_type,
        tax_year=row.tax_year,
        face_value_usd=row.face_value_usd,
        available_usd=row.available_usd,
        min_block_usd=row.min_block_usd,
        price_per_dollar=row.price_per_dollar,
        status=row.status,
        jurisdiction=row.jurisdiction,
        state_restriction=row.state_restriction,
        close_by=row.close_by,
        broker_id=row.broker_id,
        broker_name=row.broker_name,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _lot_params(lot: CreditLot) -> dict[str, Any]:
    return {
        "id": lot.id,
        "credit_type": lot.credit_type,
        "tax_year": lot.tax_year,
        "face_value_usd": lot.face_value_usd,
        "available_usd": lot.available_usd,
        "min_block_usd": lot.min_block_usd,
        "price_per_dollar": lot.price_per_dollar,
        "status": lot.status,
        "jurisdiction": lot.jurisdiction,
        "state_restriction": lot.state_restriction,
        "close_by": lot.close_by,
        "broker_id": lot.broker_id,
        "broker_name": lot.broker_name,
        "notes": lot.notes,
    }


class InventoryRepository:
    async def get(self, db: AsyncSession, lot_id: str, for_update: bool = False) -> CreditLot | None:
        sql = _GET_FOR_UPDATE_SQL if for_update else _GET_SQL
        row = (await db.execute(sql, {"id": lot_id})).fetchone()
        return _row_to_lot(row) if row else None

    async def check_availability(self, db: AsyncSession, lot_id: str, amount: Decimal) -> bool:
        lot = await self.get(db, lot_id)
        if lot is None:
            raise LotNotFoundError(lot_id)
        return lot.can_fill(amount)

    async def decrement(self, db: AsyncSession, lot_id: str, amount: Decimal) -> CreditLot:
        """Atomically take `amount` from available; the caller owns the transaction."""
        row = (await db.execute(_DECREMENT_SQL, {"id": lot_id, "amount": amount})).fetchone()
        if row is not None:
            return _row_to_lot(row)
        # Zero rows: work out why for the error, reading inside the same transaction
        lot = await self.get(db, lot_id)
        if lot is None:
            raise LotNotFoundError(lot_id)
        if lot.status != LotStatus.ACTIVE:
            raise LotNotActiveError(lot_id)
        raise InsufficientInventoryError(amount, lot.available_usd)

    async def increment(self, db: AsyncSession, lot_id: str, amount: Decimal) -> CreditLot:
        """Return `amount` to available; refuses to push available above face value."""
        row = (await db.execute(_INCREMENT_SQL, {"id": lot_id, "amount": amount})).fetchone()
        if row is not None:
            return _row_to_lot(row)
        lot = await self.get(db, lot_id)
        if lot is None:
            raise LotNotFoundError(lot_id)
        raise InventoryInvariantError(
            f"restoring {amount} to lot {lot_id} would exceed face {lot.face_value_usd}"
        )

    async def list_lots(
        self,
        db: AsyncSession,
        *,
        status: str | None = None,
        credit_type: str | None = None,
        tax_year: int | None = None,
        broker_id: str | None = None,
        only_available: bool = False,
        cursor_id: str | None = None,
        limit: int = 50,
    ) -> list[CreditLot]:
        result = await db.execute(
            _LIST_SQL,
            {
                "status": status,
                "credit_type": credit_type,
                "tax_year": tax_year,
                "broker_id": broker_id,
                "only_available": only_available,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_lot(r) for r in result.fetchall()]

    async def export_lots(self, db: AsyncSession) -> list[CreditLot]:
        result = await db.execute(_EXPORT_SQL)
        return [_row_to_lot(r) for r in result.fetchall()]

    async def insert(self, db: AsyncSession, lot: CreditLot) -> CreditLot:
        row = (await db.execute(_INSERT_SQL, _lot_params(lot))).fetchone()
        assert row is not None
        return _row_to_lot(row)

    async def save(self, db: AsyncSession, lot: CreditLot) -> CreditLot:
        row = (await db.execute(_SAVE_SQL, _lot_params(lot))).fetchone()
        if row is None:
            raise LotNotFoundError(lot.id)
        return _row_to_lot(row)

    async def has_references(self, db: AsyncSession, lot_id: str) -> bool:
        row = (await db.execute(_HAS_REFERENCES_SQL, {"id": lot_id})).fetchone()
        return bool(row.referenced) if row else False

    async def delete(self, db: AsyncSession, lot_id: str) -> None:
        await db.execute(_DELETE_SQL, {"id": lot_id})

    async def invariant_rows(self, db: AsyncSession, lot_id: str | None = None) -> list[LotInvariantRow]:
        result = await db.execute(
            _INVARIANT_SQL,
            {
                "lot_id": lot_id,
                "hold_active": HoldStatus.ACTIVE.value,
                "released_csv": ",".join(sorted(RELEASED_PAYMENT_STATUSES)),
            },
        )
        return [
            LotInvariantRow(
                lot_id=r.lot_id,
                face_value_usd=r.face_value_usd,
                available_usd=r.available_usd,
                active_holds_usd=r.active_holds_usd or ZERO,
                live_orders_usd=r.live_orders_usd or ZERO,
            )
            for r in result.fetchall()
        ]

    async def committed_usd(self, db: AsyncSession, lot_id: str) -> Decimal:
        """Active holds plus live orders on one lot; call with the lot row locked."""
        rows = await self.invariant_rows(db, lot_id)
        return rows[0].committed_usd if rows else ZERO
