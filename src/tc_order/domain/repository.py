"""Repository Protocol: dependency inversion for testability."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_order.domain.models import PurchaseExportRow, PurchaseOrder


class OrderRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, order: PurchaseOrder) -> PurchaseOrder: ...

    async def get(
        self, db: AsyncSession, order_id: str, for_update: bool = False
    ) -> PurchaseOrder | None: ...

    async def list_orders(
        self,
        db: AsyncSession,
        company_ids: list[str] | None,
        payment_status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[PurchaseOrder]: ...

    async def set_payment_status(
        self, db: AsyncSession, order_id: str, expected: str, new_status: str
    ) -> PurchaseOrder | None: ...

    async def set_stripe_session(self, db: AsyncSession, order_id: str, session_id: str) -> None: ...

    async def set_broker_status(
        self,
        db: AsyncSession,
        order_id: str,
        broker_status: str,
        closing_certificate_ref: str | None,
    ) -> PurchaseOrder | None: ...

    async def set_broker_package(self, db: AsyncSession, order_id: str, ref: str) -> None: ...

    async def export_rows(self, db: AsyncSession) -> list[PurchaseExportRow]: ...
