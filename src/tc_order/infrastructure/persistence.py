"""OrderRepository: raw SQL over purchase_orders.

Payment status changes are compare-and-set on the expected current status, so
two webhook deliveries racing on one order cannot both apply.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_order.domain.models import PurchaseExportRow, PurchaseOrder

_COLUMNS = """
    id, lot_id, company_id, amount_usd, price_per_dollar, subtotal_usd, fees_usd,
    total_usd, payment_status, broker_status, hold_id, stripe_session_id,
    broker_package_ref, closing_certificate_ref, created_by, created_at, updated_at
"""

_INSERT_SQL = text(f"""
    INSERT INTO purchase_orders
        (id, lot_id, company_id, amount_usd, price_per_dollar, subtotal_usd, fees_usd,
         total_usd, payment_status, broker_status, hold_id, created_by)
    VALUES
        (:id, :lot_id, :company_id, :amount_usd, :price_per_dollar, :subtotal_usd, :fees_usd,
         :total_usd, :payment_status, :broker_status, :hold_id, :created_by)
    RETURNING {_COLUMNS}
""")

_GET_SQL = text(f"SELECT {_COLUMNS} FROM purchase_orders WHERE id = :id")

_GET_FOR_UPDATE_SQL = text(f"SELECT {_COLUMNS} FROM purchase_orders WHERE id = :id FOR UPDATE")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM purchase_orders
    WHERE (CAST(:ids_csv AS TEXT) IS NULL
           OR company_id = ANY(string_to_array(CAST(:ids_csv AS TEXT), ',')))
      AND (CAST(:payment_status AS TEXT) IS NULL
           OR payment_status = CAST(:payment_status AS TEXT))
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < CAST(:cursor_id AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

_SET_PAYMENT_STATUS_SQL = text(f"""
    UPDATE purchase_orders
    SET payment_status = :new_status
    WHERE id = :id AND payment_status = :expected
    RETURNING {_COLUMNS}
""")

_SET_SESSION_SQL = text("UPDATE purchase_orders SET stripe_session_id = :sid WHERE id = :id")

_SET_BROKER_STATUS_SQL = text(f"""
    UPDATE purchase_orders
    SET broker_status = :broker_status,
        closing_certificate_ref = COALESCE(CAST(:cert_ref AS TEXT), closing_certificate_ref)
    WHERE id = :id
    RETURNING {_COLUMNS}
""")

_SET_PACKAGE_SQL = text("UPDATE purchase_orders SET broker_package_ref = :ref WHERE id = :id")

_PO_COLUMNS = ", ".join("po." + c.strip() for c in _COLUMNS.split(","))

_EXPORT_SQL = text(f"""
    SELECT {_PO_COLUMNS},
           c.legal_name AS company_name, ci.credit_type, ci.tax_year
    FROM purchase_orders po
    LEFT JOIN companies c ON c.id = po.company_id
    LEFT JOIN credit_inventory ci ON ci.id = po.lot_id
    ORDER BY po.created_at DESC, po.id DESC
""")


def _row_to_order(row: Any) -> PurchaseOrder:
    return PurchaseOrder(
        id=row.id,
        lot_id=row.lot_id,
        company_id=row.company_id,
        amount_usd=row.amount_usd,
        price_per_dollar=row.price_per_dollar,
        subtotal_usd=row.subtotal_usd,
        fees_usd=row.fees_usd,
        total_usd=row.total_usd,
        payment_status=row.payment_status,
        broker_status=row.broker_status,
        hold_id=row.hold_id,
        stripe_session_id=row.stripe_session_id,
        broker_package_ref=row.broker_package_ref,
        closing_certificate_ref=row.closing_certificate_ref,
        created_by=row.created_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class OrderRepository:
    async def insert(self, db: AsyncSession, order: PurchaseOrder) -> PurchaseOrder:
        row = (
            await db.execute(
                _INSERT_SQL,
                {
                    "id": order.id,
                    "lot_id": order.lot_id,
                    "company_id": order.company_id,
                    "amount_usd": order.amount_usd,
                    "price_per_dollar": order.price_per_dollar,
                    "subtotal_usd": order.subtotal_usd,
                    "fees_usd": order.fees_usd,
                    "total_usd": order.total_usd,
                    "payment_status": order.payment_status,
                    "broker_status": order.broker_status,
                    "hold_id": order.hold_id,
                    "created_by": order.created_by,
                },
            )
        ).fetchone()
        assert row is not None
        return _row_to_order(row)

    async def get(
        self, db: AsyncSession, order_id: str, for_update: bool = False
    ) -> PurchaseOrder | None:
        sql = _GET_FOR_UPDATE_SQL if for_update else _GET_SQL
        row = (await db.execute(sql, {"id": order_id})).fetchone()
        return _row_to_order(row) if row else None

    async def list_orders(
        self,
        db: AsyncSession,
        company_ids: list[str] | None,
        payment_status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[PurchaseOrder]:
        if company_ids is not None and not company_ids:
            return []
        result = await db.execute(
            _LIST_SQL,
            {
                "ids_csv": ",".join(company_ids) if company_ids is not None else None,
                "payment_status": payment_status,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_order(r) for r in result.fetchall()]

    async def set_payment_status(
        self, db: AsyncSession, order_id: str, expected: str, new_status: str
    ) -> PurchaseOrder | None:
        result = await db.execute(
            _SET_PAYMENT_STATUS_SQL,
            {"id": order_id, "expected": expected, "new_status": new_status},
        )
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def set_stripe_session(self, db: AsyncSession, order_id: str, session_id: str) -> None:
        await db.execute(_SET_SESSION_SQL, {"id": order_id, "sid": session_id})

    async def set_broker_status(
        self,
        db: AsyncSession,
        order_id: str,
        broker_status: str,
        closing_certificate_ref: str | None,
    ) -> PurchaseOrder | None:
        result = await db.execute(
            _SET_BROKER_STATUS_SQL,
            {"id": order_id, "broker_status": broker_status, "cert_ref": closing_certificate_ref},
        )
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def set_broker_package(self, db: AsyncSession, order_id: str, ref: str) -> None:
        await db.execute(_SET_PACKAGE_SQL, {"id": order_id, "ref": ref})

    async def export_rows(self, db: AsyncSession) -> list[PurchaseExportRow]:
        result = await db.execute(_EXPORT_SQL)
        return [
            PurchaseExportRow(
                order=_row_to_order(r),
                company_name=r.company_name,
                credit_type=r.credit_type,
                tax_year=r.tax_year,
            )
            for r in result.fetchall()
        ]
