"""tc_hold REST API: place, list, inspect, cancel holds; admin reclaim sweep."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_common.database import get_db_session
from src.tc_common.enums import Role
from src.tc_common.response import ApiResponse, success_response
from src.tc_gateway.auth.dependencies import client_ip, get_current_user, require_roles
from src.tc_gateway.user.db_models import UserModel
from src.tc_hold.application.schemas import CreateHoldRequest
from src.tc_hold.application.service import hold_service as _service

router = APIRouter(tags=["holds"])

CurrentUser = Annotated[UserModel, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@router.post("/holds", status_code=status.HTTP_201_CREATED)
async def create_hold(
    body: CreateHoldRequest, request: Request, current_user: CurrentUser, db: DbSession
) -> ApiResponse:
    data = await _service.create_hold(
        db, current_user, body.lot_id, body.amount_usd, body.company_id, ip=client_ip(request)
    )
    return success_response(data.model_dump(mode="json"), request)


@router.get("/holds")
async def list_holds(
    request: Request,
    current_user: CurrentUser,
    db: DbSession,
    company_id: str | None = Query(None),
    cursor: str | None = Query(None, description="Last hold id seen"),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _service.list_holds(db, current_user, company_id, cursor, limit)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/holds/{hold_id}")
async def get_hold(hold_id: str, request: Request, current_user: CurrentUser, db: DbSession) -> ApiResponse:
    data = await _service.get_hold(db, current_user, hold_id)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/holds/{hold_id}/cancel")
async def cancel_hold(hold_id: str, request: Request, current_user: CurrentUser, db: DbSession) -> ApiResponse:
    data = await _service.cancel_hold(db, current_user, hold_id, ip=client_ip(request))
    return success_response(data.model_dump(mode="json"), request)


@router.post("/admin/holds/reclaim")
async def admin_reclaim(
    request: Request,
    admin: Annotated[UserModel, Depends(require_roles(Role.ADMIN))],
    db: DbSession,
) -> ApiResponse:
    data = await _service.reclaim_expired(db, str(admin.id), admin.email)
    return success_response(data.model_dump(mode="json"), request)
