"""Post-payment side effects: broker package, closing certificate, emails.

Everything here is best effort. A failure is logged and the payment or
broker-status transition that triggered it stands.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_company.domain.repository import CompanyRepositoryProtocol
from src.tc_company.infrastructure.persistence import CompanyRepository
from src.tc_inventory.domain.repository import InventoryRepositoryProtocol
from src.tc_inventory.infrastructure.persistence import InventoryRepository
from src.tc_notify.documents import DocumentGenerator, SettlementDocumentInput
from src.tc_notify.email import EmailSender
from src.tc_order.domain.models import PurchaseOrder
from src.tc_order.domain.repository import OrderRepositoryProtocol
from src.tc_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)


class SettlementEffects:
    def __init__(
        self,
        orders: OrderRepositoryProtocol | None = None,
        companies: CompanyRepositoryProtocol | None = None,
        inventory: InventoryRepositoryProtocol | None = None,
        documents: DocumentGenerator | None = None,
        email: EmailSender | None = None,
    ) -> None:
        self._orders: OrderRepositoryProtocol = orders or OrderRepository()
        self._companies: CompanyRepositoryProtocol = companies or CompanyRepository()
        self._inventory: InventoryRepositoryProtocol = inventory or InventoryRepository()
        self._documents = documents or DocumentGenerator()
        self._email = email or EmailSender()

    async def _document_input(
        self, db: AsyncSession, order: PurchaseOrder
    ) -> tuple[SettlementDocumentInput, str | None]:
        company = await self._companies.get_company(db, order.company_id)
        lot = await self._inventory.get(db, order.lot_id)
        doc = SettlementDocumentInput(
            order_id=order.id,
            buyer_name=company.legal_name if company else order.company_id,
            credit_type=lot.credit_type if lot else "UNKNOWN",
            tax_year=lot.tax_year if lot else 0,
            amount_usd=order.amount_usd,
            price_per_dollar=order.price_per_dollar,
            total_usd=order.total_usd,
        )
        return doc, company.contact_email if company else None

    async def on_paid(self, db: AsyncSession, order: PurchaseOrder) -> str | None:
        """Write the broker package and send the payment confirmation."""
        try:
            doc, contact = await self._document_input(db, order)
            ref = await self._documents.broker_package(doc)
            await self._orders.set_broker_package(db, order.id, ref)
            await db.commit()
        except Exception:
            await db.rollback()
            logger.exception("Broker package generation failed for order %s", order.id)
            return None
        if contact:
            await self._email.send_payment_confirmation(contact, order.id)
        return ref

    async def closing_certificate(self, db: AsyncSession, order: PurchaseOrder) -> str | None:
        """Write the closing certificate and email it. Returns its reference key."""
        try:
            doc, contact = await self._document_input(db, order)
            ref, content = await self._documents.closing_certificate(doc)
        except Exception:
            logger.exception("Closing certificate generation failed for order %s", order.id)
            return None
        if contact:
            await self._email.send_closing_certificate(contact, order.id, content)
        return ref
