"""PaymentRepository: USDC payment records (one per purchase order)."""

from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_common.enums import UsdcPaymentStatus
from src.tc_common.id_generator import generate_id
from src.tc_payment.domain.models import Payment

_COLUMNS = """
    id, purchase_order_id, tx_hash, amount_usd, fee_usd, network, token, status,
    created_at, updated_at
"""

_UPSERT_SQL = text(f"""
    INSERT INTO payments
        (id, purchase_order_id, tx_hash, amount_usd, fee_usd, network, token, status)
    VALUES
        (:id, :purchase_order_id, :tx_hash, :amount_usd, :fee_usd, :network, :token, :status)
    ON CONFLICT (purchase_order_id) DO UPDATE
    SET tx_hash = EXCLUDED.tx_hash,
        amount_usd = EXCLUDED.amount_usd,
        fee_usd = EXCLUDED.fee_usd,
        status = EXCLUDED.status
    RETURNING {_COLUMNS}
""")

_GET_BY_ORDER_SQL = text(f"SELECT {_COLUMNS} FROM payments WHERE purchase_order_id = :order_id")


def _row_to_payment(row: Any) -> Payment:
    return Payment(
        id=row.id,
        purchase_order_id=row.purchase_order_id,
        tx_hash=row.tx_hash,
        amount_usd=row.amount_usd,
        fee_usd=row.fee_usd,
        network=row.network,
        token=row.token,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class PaymentRepository:
    async def upsert_submitted(
        self,
        db: AsyncSession,
        order_id: str,
        tx_hash: str,
        amount_usd: Decimal,
        fee_usd: Decimal,
        network: str,
        token: str,
    ) -> Payment:
        row = (
            await db.execute(
                _UPSERT_SQL,
                {
                    "id": generate_id("PAY"),
                    "purchase_order_id": order_id,
                    "tx_hash": tx_hash,
                    "amount_usd": amount_usd,
                    "fee_usd": fee_usd,
                    "network": network,
                    "token": token,
                    "status": UsdcPaymentStatus.SUBMITTED.value,
                },
            )
        ).fetchone()
        assert row is not None
        return _row_to_payment(row)

    async def get_by_order(self, db: AsyncSession, order_id: str) -> Payment | None:
        row = (await db.execute(_GET_BY_ORDER_SQL, {"order_id": order_id})).fetchone()
        return _row_to_payment(row) if row else None
