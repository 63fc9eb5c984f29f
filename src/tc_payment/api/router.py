"""tc_payment REST API: Stripe webhook, USDC submission, admin status override."""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_common.database import get_db_session
from src.tc_common.enums import Role
from src.tc_common.response import ApiResponse, success_response
from src.tc_gateway.auth.dependencies import client_ip, require_roles
from src.tc_gateway.user.db_models import UserModel
from src.tc_payment.application.schemas import PaymentStatusRequest, UsdcPaymentRequest
from src.tc_payment.application.service import payment_service as _service

router = APIRouter(tags=["payments"])

AdminUser = Annotated[UserModel, Depends(require_roles(Role.ADMIN))]
PayerUser = Annotated[UserModel, Depends(require_roles(Role.ADMIN, Role.ACCOUNTANT))]
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@router.post("/webhooks/stripe")
async def stripe_webhook(
    request: Request,
    db: DbSession,
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
) -> ApiResponse:
    # signature covers the exact bytes Stripe sent, so read the raw body
    payload = await request.body()
    data = await _service.handle_stripe_webhook(db, payload, stripe_signature)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/payments", status_code=status.HTTP_201_CREATED)
async def submit_usdc_payment(
    body: UsdcPaymentRequest, request: Request, current_user: PayerUser, db: DbSession
) -> ApiResponse:
    data = await _service.submit_usdc(db, current_user, body, ip=client_ip(request))
    return success_response(data.model_dump(mode="json"), request)


@router.post("/admin/purchases/{order_id}/payment-status")
async def set_payment_status(
    order_id: str, body: PaymentStatusRequest, request: Request, admin: AdminUser, db: DbSession
) -> ApiResponse:
    data = await _service.admin_set_status(db, admin, order_id, body.status, body.reason)
    return success_response(data.model_dump(mode="json"), request)
