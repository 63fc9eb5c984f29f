"""Company-scoped reads: company detail and accountant client list."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_common.database import get_db_session
from src.tc_common.enums import CompanyStatus, Role
from src.tc_common.response import ApiResponse, success_response
from src.tc_company.application.service import company_service as _service
from src.tc_gateway.auth.dependencies import get_current_user, require_roles
from src.tc_gateway.user.db_models import UserModel

router = APIRouter(tags=["companies"])


@router.get("/companies")
async def list_companies(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    status: CompanyStatus | None = Query(None),
) -> ApiResponse:
    data = await _service.list_companies(db, current_user, status.value if status else None)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/companies/{company_id}")
async def get_company(
    company_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.get_company(db, current_user, company_id)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/accountant/companies")
async def accountant_companies(
    request: Request,
    current_user: Annotated[UserModel, Depends(require_roles(Role.ACCOUNTANT))],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.accountant_companies(db, current_user)
    return success_response(data.model_dump(mode="json"), request)
