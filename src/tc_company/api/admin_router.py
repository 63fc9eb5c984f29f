"""Admin participant management: company verification/lifecycle, accountant links, brokers."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_common.database import get_db_session
from src.tc_common.enums import AuditAction, CompanyStatus, Role
from src.tc_common.response import ApiResponse, success_response
from src.tc_company.application.schemas import (
    AccountantLinkRequest,
    VerifyBrokerRequest,
    VerifyCompanyRequest,
)
from src.tc_company.application.service import company_service as _service
from src.tc_gateway.auth.dependencies import require_roles
from src.tc_gateway.user.db_models import UserModel

router = APIRouter(prefix="/admin", tags=["admin"])

AdminUser = Annotated[UserModel, Depends(require_roles(Role.ADMIN))]
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@router.get("/companies")
async def list_companies(
    request: Request,
    admin: AdminUser,
    db: DbSession,
    status: CompanyStatus | None = Query(None),
) -> ApiResponse:
    data = await _service.list_companies(db, admin, status.value if status else None)
    return success_response(data.model_dump(mode="json"), request)


@router.patch("/companies/{company_id}/verify")
async def verify_company(
    company_id: str, body: VerifyCompanyRequest, request: Request, admin: AdminUser, db: DbSession
) -> ApiResponse:
    data = await _service.verify_company(db, admin, company_id, body.status, body.note)
    return success_response(data.model_dump(mode="json"), request)


async def _lifecycle(
    request: Request, admin: UserModel, db: AsyncSession, company_id: str, action: AuditAction
) -> ApiResponse:
    data = await _service.change_status(db, admin, company_id, action)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/companies/{company_id}/block")
async def block_company(company_id: str, request: Request, admin: AdminUser, db: DbSession) -> ApiResponse:
    return await _lifecycle(request, admin, db, company_id, AuditAction.BLOCK_COMPANY)


@router.post("/companies/{company_id}/unblock")
async def unblock_company(company_id: str, request: Request, admin: AdminUser, db: DbSession) -> ApiResponse:
    return await _lifecycle(request, admin, db, company_id, AuditAction.UNBLOCK_COMPANY)


@router.post("/companies/{company_id}/archive")
async def archive_company(company_id: str, request: Request, admin: AdminUser, db: DbSession) -> ApiResponse:
    return await _lifecycle(request, admin, db, company_id, AuditAction.ARCHIVE_COMPANY)


@router.post("/companies/{company_id}/unarchive")
async def unarchive_company(company_id: str, request: Request, admin: AdminUser, db: DbSession) -> ApiResponse:
    return await _lifecycle(request, admin, db, company_id, AuditAction.UNARCHIVE_COMPANY)


@router.get("/accountants")
async def list_accountants(request: Request, admin: AdminUser, db: DbSession) -> ApiResponse:
    data = await _service.list_accountants(db)
    return success_response([a.model_dump() for a in data], request)


@router.post("/accountants/link")
async def link_accountant(
    body: AccountantLinkRequest, request: Request, admin: AdminUser, db: DbSession
) -> ApiResponse:
    data = await _service.link_accountant(db, admin, body.accountant_id, body.company_id)
    return success_response(data.model_dump(), request)


@router.post("/accountants/unlink")
async def unlink_accountant(
    body: AccountantLinkRequest, request: Request, admin: AdminUser, db: DbSession
) -> ApiResponse:
    data = await _service.unlink_accountant(db, admin, body.accountant_id, body.company_id)
    return success_response(data.model_dump(), request)


@router.get("/brokers")
async def list_brokers(request: Request, admin: AdminUser, db: DbSession) -> ApiResponse:
    data = await _service.list_brokers(db)
    return success_response([b.model_dump() for b in data], request)


@router.post("/brokers/{broker_id}/verify")
async def verify_broker(
    broker_id: str, body: VerifyBrokerRequest, request: Request, admin: AdminUser, db: DbSession
) -> ApiResponse:
    data = await _service.verify_broker(db, admin, broker_id, body.status)
    return success_response(data.model_dump(), request)
