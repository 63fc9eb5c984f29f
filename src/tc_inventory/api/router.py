"""tc_inventory REST API: marketplace, admin and broker lot endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_common.database import get_db_session
from src.tc_common.enums import CreditType, LotStatus, Role
from src.tc_common.response import ApiResponse, csv_response, success_response
from src.tc_gateway.auth.dependencies import get_current_user, require_roles
from src.tc_gateway.user.db_models import UserModel
from src.tc_inventory.application.schemas import (
    BrokerLotUpdateRequest,
    LotCreateRequest,
    LotUpdateRequest,
)
from src.tc_inventory.application.service import inventory_service as _service

router = APIRouter(tags=["inventory"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]
AdminUser = Annotated[UserModel, Depends(require_roles(Role.ADMIN))]
BrokerUser = Annotated[UserModel, Depends(require_roles(Role.BROKER))]


# --- Marketplace ---

@router.get("/inventory")
async def list_marketplace(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: DbSession,
    credit_type: CreditType | None = Query(None),
    tax_year: int | None = Query(None, ge=2000, le=2100),
    cursor: str | None = Query(None, description="Last lot id seen"),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _service.marketplace(
        db, credit_type.value if credit_type else None, tax_year, cursor, limit
    )
    return success_response(data.model_dump(mode="json"), request)


@router.get("/inventory/{lot_id}")
async def get_lot(
    lot_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: DbSession,
) -> ApiResponse:
    data = await _service.get_lot(db, lot_id)
    return success_response(data.model_dump(mode="json"), request)


# --- Admin ---

@router.get("/admin/inventory")
async def admin_list(
    request: Request,
    admin: AdminUser,
    db: DbSession,
    lot_status: LotStatus | None = Query(None, alias="status"),
    credit_type: CreditType | None = Query(None),
    cursor: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    data = await _service.admin_list(
        db,
        lot_status.value if lot_status else None,
        credit_type.value if credit_type else None,
        cursor,
        limit,
    )
    return success_response(data.model_dump(mode="json"), request)


@router.post("/admin/inventory", status_code=status.HTTP_201_CREATED)
async def admin_create(
    body: LotCreateRequest, request: Request, admin: AdminUser, db: DbSession
) -> ApiResponse:
    data = await _service.create_lot(db, admin, body)
    return success_response(data.model_dump(mode="json"), request)


@router.patch("/admin/inventory/{lot_id}")
async def admin_update(
    lot_id: str, body: LotUpdateRequest, request: Request, admin: AdminUser, db: DbSession
) -> ApiResponse:
    data = await _service.update_lot(db, admin, lot_id, body)
    return success_response(data.model_dump(mode="json"), request)


@router.delete("/admin/inventory/{lot_id}")
async def admin_delete(lot_id: str, request: Request, admin: AdminUser, db: DbSession) -> ApiResponse:
    data = await _service.delete_lot(db, admin, lot_id)
    return success_response(data.model_dump(), request)


@router.post("/admin/inventory/import", status_code=status.HTTP_201_CREATED)
async def admin_import(
    request: Request,
    admin: AdminUser,
    db: DbSession,
    source: str | None = Query(None, max_length=128, description="Where the sheet came from"),
) -> ApiResponse:
    """Bulk upload: the request body is the CSV file itself (Content-Type: text/csv)."""
    data = await _service.import_lots(db, admin, await request.body(), source)
    return success_response(data.model_dump(), request)


@router.get("/admin/export/inventory")
async def admin_export(admin: AdminUser, db: DbSession) -> Response:
    return csv_response(await _service.export_csv(db, admin), "inventory.csv")


# --- Broker (own lots only) ---

@router.get("/broker/inventory")
async def broker_list(
    request: Request,
    broker: BrokerUser,
    db: DbSession,
    cursor: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    data = await _service.broker_list(db, broker, cursor, limit)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/broker/inventory", status_code=status.HTTP_201_CREATED)
async def broker_create(
    body: LotCreateRequest, request: Request, broker: BrokerUser, db: DbSession
) -> ApiResponse:
    data = await _service.broker_create(db, broker, body)
    return success_response(data.model_dump(mode="json"), request)


@router.patch("/broker/inventory/{lot_id}")
async def broker_update(
    lot_id: str, body: BrokerLotUpdateRequest, request: Request, broker: BrokerUser, db: DbSession
) -> ApiResponse:
    data = await _service.broker_update(db, broker, lot_id, body)
    return success_response(data.model_dump(mode="json"), request)
