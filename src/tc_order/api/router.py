"""tc_order REST API: checkout, purchases, fee quote, admin purchase review."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_common.database import get_db_session
from src.tc_common.enums import PaymentStatus, Role
from src.tc_common.response import ApiResponse, csv_response, success_response
from src.tc_gateway.auth.dependencies import client_ip, get_current_user, require_roles
from src.tc_gateway.user.db_models import UserModel
from src.tc_order.application.schemas import BrokerStatusRequest, CheckoutRequest, QuoteRequest
from src.tc_order.application.service import order_service as _service

router = APIRouter(tags=["orders"])

CurrentUser = Annotated[UserModel, Depends(get_current_user)]
AdminUser = Annotated[UserModel, Depends(require_roles(Role.ADMIN))]
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@router.post("/checkout", status_code=status.HTTP_201_CREATED)
async def checkout(
    body: CheckoutRequest, request: Request, current_user: CurrentUser, db: DbSession
) -> ApiResponse:
    data = await _service.create_order(
        db,
        current_user,
        body.lot_id,
        body.amount_usd,
        company_id=body.company_id,
        hold_id=body.hold_id,
        ip=client_ip(request),
    )
    return success_response(data.model_dump(mode="json"), request)


@router.get("/purchases")
async def list_purchases(
    request: Request,
    current_user: CurrentUser,
    db: DbSession,
    company_id: str | None = Query(None),
    payment_status: PaymentStatus | None = Query(None),
    cursor: str | None = Query(None, description="Last order id seen"),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _service.list_orders(
        db,
        current_user,
        company_id,
        payment_status.value if payment_status else None,
        cursor,
        limit,
    )
    return success_response(data.model_dump(mode="json"), request)


@router.get("/purchases/{order_id}")
async def get_purchase(order_id: str, request: Request, current_user: CurrentUser, db: DbSession) -> ApiResponse:
    data = await _service.get_order(db, current_user, order_id)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/calculator/quote")
async def quote(body: QuoteRequest, request: Request, current_user: CurrentUser) -> ApiResponse:
    data = _service.quote(body)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/admin/purchases")
async def admin_list_purchases(
    request: Request,
    admin: AdminUser,
    db: DbSession,
    payment_status: PaymentStatus | None = Query(None),
    cursor: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    data = await _service.admin_list(
        db, payment_status.value if payment_status else None, cursor, limit
    )
    return success_response(data.model_dump(mode="json"), request)


@router.get("/admin/export/purchases")
async def admin_export_purchases(admin: AdminUser, db: DbSession) -> Response:
    return csv_response(await _service.export_csv(db, admin), "purchases.csv")


@router.post("/admin/purchases/{order_id}/broker-status")
async def update_broker_status(
    order_id: str, body: BrokerStatusRequest, request: Request, admin: AdminUser, db: DbSession
) -> ApiResponse:
    data = await _service.update_broker_status(db, admin, order_id, body.status, body.note)
    return success_response(data.model_dump(mode="json"), request)
