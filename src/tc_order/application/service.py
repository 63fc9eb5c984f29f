"""OrderService: checkout, purchase history, admin broker review.

create_order inserts the order and takes its amount from the lot (or
consumes a matching hold) in one transaction. With a payment processor
configured the order waits in PENDING_PAYMENT for the webhook; without one it
settles immediately as PAID_TEST.
"""

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tc_access.application.service import AccessService, access_service
from src.tc_audit.application.writer import AuditWriter, audit_writer
from src.tc_common.csv_io import write_csv
from src.tc_common.database import atomic
from src.tc_common.datetime_utils import utc_now
from src.tc_common.enums import (
    AuditAction,
    AuditEntity,
    BrokerStatus,
    PaymentStatus,
)
from src.tc_common.errors import (
    BelowMinimumBlockError,
    ExternalServiceError,
    LotNotActiveError,
    LotNotFoundError,
    OrderNotFoundError,
    ValidationError,
)
from src.tc_common.id_generator import generate_id
from src.tc_common.money import to_usd, usd_display
from src.tc_common.pagination import split_page
from src.tc_company.application.service import CompanyService, company_service
from src.tc_gateway.user.db_models import UserModel
from src.tc_hold.application.service import HoldService, hold_service, resolve_company_id
from src.tc_inventory.domain.repository import InventoryRepositoryProtocol
from src.tc_inventory.infrastructure.persistence import InventoryRepository
from src.tc_order.application.schemas import (
    CheckoutResponse,
    OrderListResponse,
    OrderResponse,
    QuoteRequest,
    QuoteResponse,
)
from src.tc_order.application.settlement import SettlementEffects
from src.tc_order.domain.fees import compute, price_order
from src.tc_order.domain.models import PurchaseOrder
from src.tc_order.domain.repository import OrderRepositoryProtocol
from src.tc_order.infrastructure.persistence import OrderRepository
from src.tc_payment.infrastructure.stripe_client import StripeClient

logger = logging.getLogger(__name__)

EXPORT_HEADER = (
    "PO ID",
    "Company",
    "Credit Type",
    "Tax Year",
    "Amount USD",
    "Price Per Dollar",
    "Subtotal",
    "Fees",
    "Total",
    "Status",
    "Broker Status",
    "Created At",
)


class OrderService:
    def __init__(
        self,
        repo: OrderRepositoryProtocol | None = None,
        inventory: InventoryRepositoryProtocol | None = None,
        holds: HoldService | None = None,
        companies: CompanyService | None = None,
        access: AccessService | None = None,
        audit: AuditWriter | None = None,
        stripe: StripeClient | None = None,
        effects: SettlementEffects | None = None,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._inventory: InventoryRepositoryProtocol = inventory or InventoryRepository()
        self._holds = holds or hold_service
        self._companies = companies or company_service
        self._access = access or access_service
        self._audit = audit or audit_writer
        self._stripe = stripe or StripeClient()
        self._effects = effects or SettlementEffects()

    # ------------------------------------------------------------------
    # Calculator
    # ------------------------------------------------------------------

    @staticmethod
    def quote(req: QuoteRequest) -> QuoteResponse:
        pct = req.platform_fee_pct if req.platform_fee_pct is not None else settings.PLATFORM_FEE_PERCENT
        fb = compute(
            req.face_value_usd,
            req.credit_price,
            pct,
            req.broker_fee_pct,
            req.fee_base,
            req.flat_fee_floor,
        )
        return QuoteResponse.from_domain(fb)

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    async def create_order(
        self,
        db: AsyncSession,
        user: UserModel,
        lot_id: str,
        amount: Decimal,
        company_id: str | None = None,
        hold_id: str | None = None,
        ip: str | None = None,
    ) -> CheckoutResponse:
        amount = to_usd(amount)
        company_id = resolve_company_id(user, company_id)
        await self._access.require_company_access(db, user, company_id)
        await self._companies.get_active_company(db, company_id)

        lot = await self._inventory.get(db, lot_id)
        if lot is None:
            raise LotNotFoundError(lot_id)
        if not lot.is_active:
            raise LotNotActiveError(lot_id)
        if hold_id is None and amount < lot.min_block_usd:
            raise BelowMinimumBlockError(amount, lot.min_block_usd)

        # Price is locked from the lot as read here
        pricing = price_order(
            amount, lot.price_per_dollar, settings.PLATFORM_FEE_PERCENT, settings.PLATFORM_FEE_FLAT_USD
        )
        use_processor = self._stripe.enabled
        initial = PaymentStatus.PENDING_PAYMENT if use_processor else PaymentStatus.PAID_TEST
        now = utc_now()

        async with atomic(db):
            order = await self._repo.insert(
                db,
                PurchaseOrder(
                    id=generate_id("PO"),
                    lot_id=lot_id,
                    company_id=company_id,
                    amount_usd=amount,
                    price_per_dollar=lot.price_per_dollar,
                    subtotal_usd=pricing.subtotal,
                    fees_usd=pricing.fees,
                    total_usd=pricing.total,
                    payment_status=initial.value,
                    broker_status=BrokerStatus.PENDING.value,
                    hold_id=hold_id,
                    created_by=str(user.id),
                ),
            )
            if hold_id is not None:
                await self._holds.consume_for_order(
                    db, hold_id, company_id, lot_id, amount, order.id, now
                )
            else:
                await self._inventory.decrement(db, lot_id, amount)

        logger.info(
            "Order %s created: lot=%s company=%s amount=%s total=%s status=%s",
            order.id, lot_id, company_id, amount, order.total_usd, order.payment_status,
        )
        await self._audit.write(
            str(user.id),
            user.email,
            AuditAction.CREATE.value,
            AuditEntity.PURCHASE_ORDER.value,
            entity_id=order.id,
            company_id=company_id,
            amount_usd=order.total_usd,
            details={
                "lot_id": lot_id,
                "amount_usd": amount,
                "price_per_dollar": order.price_per_dollar,
                "hold_id": hold_id,
                "payment_status": order.payment_status,
            },
            ip=ip,
        )

        if not use_processor:
            ref = await self._effects.on_paid(db, order)
            if ref:
                order.broker_package_ref = ref
            return CheckoutResponse(
                order=OrderResponse.from_domain(order), checkout_url=None, demo_mode=True
            )

        description = (
            f"{lot.credit_type} {lot.tax_year} - {usd_display(amount)} face @ ${lot.price_per_dollar}"
        )
        try:
            session = await self._stripe.create_checkout_session(order.id, description, order.total_usd)
        except ExternalServiceError:
            await self._compensate(db, user, order, ip)
            raise

        async with atomic(db):
            await self._repo.set_stripe_session(db, order.id, session.id)
        order.stripe_session_id = session.id

        await self._audit.write(
            str(user.id),
            user.email,
            AuditAction.PAYMENT_INITIATED.value,
            AuditEntity.PAYMENT.value,
            entity_id=order.id,
            company_id=company_id,
            amount_usd=order.total_usd,
            details={"provider": "stripe", "session_id": session.id},
            ip=ip,
        )
        return CheckoutResponse(
            order=OrderResponse.from_domain(order), checkout_url=session.url, demo_mode=False
        )

    async def _compensate(
        self, db: AsyncSession, user: UserModel, order: PurchaseOrder, ip: str | None
    ) -> None:
        """Processor unreachable: fail the committed order and give the amount back."""
        async with atomic(db):
            failed = await self._repo.set_payment_status(
                db, order.id, PaymentStatus.PENDING_PAYMENT.value, PaymentStatus.FAILED.value
            )
            if failed is not None:
                await self._inventory.increment(db, order.lot_id, order.amount_usd)
        logger.warning("Order %s failed at checkout; %s restored to lot %s", order.id, order.amount_usd, order.lot_id)
        await self._audit.write(
            str(user.id),
            user.email,
            AuditAction.PAYMENT_FAILED.value,
            AuditEntity.PURCHASE_ORDER.value,
            entity_id=order.id,
            company_id=order.company_id,
            amount_usd=order.total_usd,
            details={"reason": "checkout session could not be created"},
            ip=ip,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_order(self, db: AsyncSession, user: UserModel, order_id: str) -> OrderResponse:
        order = await self._repo.get(db, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        await self._access.require_company_access(db, user, order.company_id)
        return OrderResponse.from_domain(order)

    async def list_orders(
        self,
        db: AsyncSession,
        user: UserModel,
        company_id: str | None,
        payment_status: str | None,
        cursor: str | None,
        limit: int,
    ) -> OrderListResponse:
        if company_id is not None:
            await self._access.require_company_access(db, user, company_id)
            scope: list[str] | None = [company_id]
        else:
            scope = await self._access.accessible_company_ids(db, user)
        rows = await self._repo.list_orders(db, scope, payment_status, cursor, limit + 1)
        return self._page(rows, limit)

    async def admin_list(
        self, db: AsyncSession, payment_status: str | None, cursor: str | None, limit: int
    ) -> OrderListResponse:
        rows = await self._repo.list_orders(db, None, payment_status, cursor, limit + 1)
        return self._page(rows, limit)

    async def export_csv(self, db: AsyncSession, admin: UserModel) -> str:
        rows = await self._repo.export_rows(db)
        content = write_csv(
            EXPORT_HEADER,
            (
                (
                    r.order.id,
                    r.company_name,
                    r.credit_type,
                    r.tax_year,
                    r.order.amount_usd,
                    r.order.price_per_dollar,
                    r.order.subtotal_usd,
                    r.order.fees_usd,
                    r.order.total_usd,
                    r.order.payment_status,
                    r.order.broker_status,
                    r.order.created_at,
                )
                for r in rows
            ),
        )
        await self._audit.write(
            str(admin.id),
            admin.email,
            AuditAction.EXPORT.value,
            AuditEntity.PURCHASE_ORDER.value,
            details={"rows": len(rows)},
        )
        return content

    @staticmethod
    def _page(rows: list[PurchaseOrder], limit: int) -> OrderListResponse:
        page, has_more = split_page(rows, limit)
        return OrderListResponse(
            items=[OrderResponse.from_domain(o) for o in page],
            next_cursor=page[-1].id if has_more and page else None,
            has_more=has_more,
        )

    # ------------------------------------------------------------------
    # Broker review (independent of payment status)
    # ------------------------------------------------------------------

    async def update_broker_status(
        self,
        db: AsyncSession,
        admin: UserModel,
        order_id: str,
        status: BrokerStatus,
        note: str | None = None,
    ) -> OrderResponse:
        order = await self._repo.get(db, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if status == BrokerStatus.APPROVED and not order.is_completed:
            raise ValidationError(
                f"Cannot approve order {order_id} with payment status {order.payment_status}"
            )

        cert_ref = None
        if status == BrokerStatus.APPROVED:
            cert_ref = await self._effects.closing_certificate(db, order)

        async with atomic(db):
            updated = await self._repo.set_broker_status(db, order_id, status.value, cert_ref)
            if updated is None:
                raise OrderNotFoundError(order_id)

        await self._audit.write(
            str(admin.id),
            admin.email,
            AuditAction.UPDATE_BROKER_STATUS.value,
            AuditEntity.PURCHASE_ORDER.value,
            entity_id=order_id,
            company_id=order.company_id,
            details={
                "previous": order.broker_status,
                "status": status.value,
                "note": note,
                "closing_certificate_ref": cert_ref,
            },
        )
        return OrderResponse.from_domain(updated)


order_service = OrderService()
