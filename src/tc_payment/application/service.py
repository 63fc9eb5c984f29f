"""PaymentService: drives the purchase order payment state machine.

Transitions arrive from the Stripe webhook, USDC submissions and admin
status updates. Each one is a compare-and-set on the order row; entering
FAILED, CANCELED or REFUNDED returns the order amount to its lot in the
same transaction. Audit, documents and email follow after commit.
"""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tc_access.application.service import AccessService, access_service
from src.tc_audit.application.writer import AuditWriter, audit_writer
from src.tc_common.database import atomic
from src.tc_common.enums import AuditAction, AuditEntity, PaymentStatus, Role
from src.tc_common.errors import (
    ForbiddenError,
    InvalidStatusTransitionError,
    OrderNotFoundError,
    PaymentAmountMismatchError,
)
from src.tc_gateway.user.db_models import UserModel
from src.tc_inventory.domain.repository import InventoryRepositoryProtocol
from src.tc_inventory.infrastructure.persistence import InventoryRepository
from src.tc_order.application.schemas import OrderResponse
from src.tc_order.application.settlement import SettlementEffects
from src.tc_order.domain.models import PurchaseOrder
from src.tc_order.domain.repository import OrderRepositoryProtocol
from src.tc_order.domain.transitions import check_transition, releases_inventory
from src.tc_order.infrastructure.persistence import OrderRepository
from src.tc_payment.application.schemas import (
    PaymentResponse,
    StatusChangeResponse,
    UsdcPaymentRequest,
    UsdcPaymentResponse,
    WebhookAck,
)
from src.tc_payment.domain.models import STATUS_AUDIT_ACTION, map_stripe_event
from src.tc_payment.infrastructure.stripe_client import verify_webhook
from src.tc_payment.infrastructure.persistence import PaymentRepository

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    order: PurchaseOrder
    previous: str
    changed: bool


class PaymentService:
    def __init__(
        self,
        orders: OrderRepositoryProtocol | None = None,
        inventory: InventoryRepositoryProtocol | None = None,
        payments: PaymentRepository | None = None,
        access: AccessService | None = None,
        audit: AuditWriter | None = None,
        effects: SettlementEffects | None = None,
        webhook_secret: str | None = None,
    ) -> None:
        self._orders: OrderRepositoryProtocol = orders or OrderRepository()
        self._inventory: InventoryRepositoryProtocol = inventory or InventoryRepository()
        self._payments = payments or PaymentRepository()
        self._access = access or access_service
        self._audit = audit or audit_writer
        self._effects = effects or SettlementEffects()
        self._webhook_secret = (
            webhook_secret if webhook_secret is not None else settings.STRIPE_WEBHOOK_SECRET
        )

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    async def _transition_in_tx(
        self, db: AsyncSession, order_id: str, target: PaymentStatus
    ) -> TransitionResult:
        """Apply one transition on the caller's open transaction."""
        order = await self._orders.get(db, order_id, for_update=True)
        if order is None:
            raise OrderNotFoundError(order_id)
        previous = order.payment_status
        if not check_transition(previous, target.value):
            return TransitionResult(order=order, previous=previous, changed=False)
        updated = await self._orders.set_payment_status(db, order_id, previous, target.value)
        if updated is None:
            # status moved under us between the read and the compare-and-set
            raise InvalidStatusTransitionError(previous, target.value)
        if releases_inventory(target.value):
            await self._inventory.increment(db, order.lot_id, order.amount_usd)
        return TransitionResult(order=updated, previous=previous, changed=True)

    async def _after_transition(
        self,
        db: AsyncSession,
        result: TransitionResult,
        actor_id: str | None,
        actor_email: str | None,
        details: dict[str, Any],
    ) -> None:
        if not result.changed:
            return
        order = result.order
        action = STATUS_AUDIT_ACTION.get(order.payment_status)
        if action is not None:
            await self._audit.write(
                actor_id,
                actor_email,
                action.value,
                AuditEntity.PURCHASE_ORDER.value,
                entity_id=order.id,
                company_id=order.company_id,
                amount_usd=order.total_usd,
                details={
                    "from": result.previous,
                    "to": order.payment_status,
                    "inventory_restored": releases_inventory(order.payment_status),
                    **details,
                },
            )
        if order.payment_status == PaymentStatus.PAID:
            ref = await self._effects.on_paid(db, order)
            if ref:
                order.broker_package_ref = ref

    async def apply_status(
        self,
        db: AsyncSession,
        order_id: str,
        target: PaymentStatus,
        actor_id: str | None = None,
        actor_email: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> TransitionResult:
        async with atomic(db):
            result = await self._transition_in_tx(db, order_id, target)
        if result.changed:
            logger.info("Order %s payment %s -> %s", order_id, result.previous, target.value)
        await self._after_transition(db, result, actor_id, actor_email, details or {})
        return result

    async def admin_set_status(
        self,
        db: AsyncSession,
        admin: UserModel,
        order_id: str,
        target: PaymentStatus,
        reason: str | None,
    ) -> StatusChangeResponse:
        result = await self.apply_status(
            db, order_id, target, str(admin.id), admin.email, {"source": "admin", "reason": reason}
        )
        return StatusChangeResponse(order=OrderResponse.from_domain(result.order), changed=result.changed)

    # ------------------------------------------------------------------
    # Stripe webhook
    # ------------------------------------------------------------------

    async def handle_stripe_webhook(
        self, db: AsyncSession, payload: bytes, signature_header: str | None
    ) -> WebhookAck:
        """Verify, then apply. Nothing is read or written before the signature checks out."""
        event = verify_webhook(
            payload,
            signature_header,
            self._webhook_secret,
            settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS,
        )

        target = map_stripe_event(event)
        event_type = event.get("type")
        if target is None:
            return WebhookAck(event_type=event_type, detail="ignored")

        try:
            result = await self.apply_status(
                db,
                target.order_id,
                target.status,
                details={"source": "stripe", "event_id": target.event_id, "event_type": event_type},
            )
        except OrderNotFoundError:
            logger.error("Stripe event %s references unknown order %s", target.event_id, target.order_id)
            return WebhookAck(event_type=event_type, order_id=target.order_id, detail="unknown order")
        except InvalidStatusTransitionError as exc:
            # Out-of-order or late events are permanent rejections; ack so Stripe stops retrying
            logger.warning("Stripe event %s not applied: %s", target.event_id, exc.message)
            return WebhookAck(event_type=event_type, order_id=target.order_id, detail=exc.message)

        return WebhookAck(
            applied=result.changed,
            event_type=event_type,
            order_id=target.order_id,
            detail=None if result.changed else "duplicate",
        )

    # ------------------------------------------------------------------
    # USDC
    # ------------------------------------------------------------------

    async def submit_usdc(
        self, db: AsyncSession, user: UserModel, req: UsdcPaymentRequest, ip: str | None = None
    ) -> UsdcPaymentResponse:
        """Record an on-chain payment and mark the order PAID.

        Only admins and accountants linked to the buying company may submit.
        amount + fee must match the order total within the configured tolerance.
        """
        if user.role not in (Role.ADMIN, Role.ACCOUNTANT):
            raise ForbiddenError("Only admins and accountants can submit payments")

        order = await self._orders.get(db, req.purchase_order_id)
        if order is None:
            raise OrderNotFoundError(req.purchase_order_id)
        await self._access.require_company_access(db, user, order.company_id)

        submitted = req.amount_usd + req.fee_usd
        if abs(order.total_usd - submitted) > settings.USDC_PAYMENT_TOLERANCE_USD:
            raise PaymentAmountMismatchError(order.total_usd, submitted)

        async with atomic(db):
            locked = await self._orders.get(db, order.id, for_update=True)
            if locked is None:
                raise OrderNotFoundError(order.id)
            if locked.payment_status != PaymentStatus.PENDING_PAYMENT:
                raise InvalidStatusTransitionError(locked.payment_status, PaymentStatus.PAID.value)
            payment = await self._payments.upsert_submitted(
                db, order.id, req.tx_hash, req.amount_usd, req.fee_usd, req.network, req.token
            )
            result = await self._transition_in_tx(db, order.id, PaymentStatus.PAID)

        await self._audit.write(
            str(user.id),
            user.email,
            AuditAction.PAYMENT_SUBMITTED.value,
            AuditEntity.PAYMENT.value,
            entity_id=payment.id,
            company_id=order.company_id,
            amount_usd=submitted,
            details={
                "purchase_order_id": order.id,
                "tx_hash": req.tx_hash,
                "amount_usd": req.amount_usd,
                "fee_usd": req.fee_usd,
                "network": req.network,
            },
            ip=ip,
        )
        await self._after_transition(
            db, result, str(user.id), user.email, {"source": "usdc", "tx_hash": req.tx_hash}
        )
        return UsdcPaymentResponse(
            payment=PaymentResponse.from_domain(payment),
            order=OrderResponse.from_domain(result.order),
        )


payment_service = PaymentService()
