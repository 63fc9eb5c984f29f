"""Admin dashboard REST API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_admin.application.service import admin_service as _service
from src.tc_common.database import get_db_session
from src.tc_common.enums import Role
from src.tc_common.response import ApiResponse, success_response
from src.tc_gateway.auth.dependencies import require_roles
from src.tc_gateway.user.db_models import UserModel

router = APIRouter(prefix="/admin", tags=["admin"])

AdminUser = Annotated[UserModel, Depends(require_roles(Role.ADMIN))]
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@router.get("/stats")
async def platform_stats(request: Request, admin: AdminUser, db: DbSession) -> ApiResponse:
    data = await _service.stats(db)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/invariants")
async def inventory_invariants(request: Request, admin: AdminUser, db: DbSession) -> ApiResponse:
    data = await _service.invariants(db)
    return success_response(data.model_dump(mode="json"), request)
