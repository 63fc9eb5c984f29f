"""tc_audit admin endpoints.

POST /admin/audit/query    : filtered, cursor-paginated log + dashboard aggregates
GET  /admin/audit/summary  : totals, top actions, anomalies for a window (default 24h)
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_audit.application.schemas import AuditQueryRequest, SummaryResponse
from src.tc_audit.application.service import AuditQueryService
from src.tc_common.database import get_db_session
from src.tc_common.datetime_utils import parse_iso
from src.tc_common.enums import Role
from src.tc_common.errors import ValidationError
from src.tc_common.response import ApiResponse, success_response
from src.tc_gateway.auth.dependencies import require_roles
from src.tc_gateway.user.db_models import UserModel

router = APIRouter(prefix="/admin/audit", tags=["audit"])

_service = AuditQueryService()


def _parse_bound(value: str | None, name: str) -> datetime | None:
    try:
        return parse_iso(value)
    except ValueError:
        raise ValidationError(f"'{name}' is not an ISO8601 date: {value}") from None


@router.post("/query")
async def query_audit(
    body: AuditQueryRequest,
    request: Request,
    admin: Annotated[UserModel, Depends(require_roles(Role.ADMIN))],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.query(db, body)
    return success_response(result.model_dump(mode="json"), request)


@router.get("/summary")
async def audit_summary(
    request: Request,
    admin: Annotated[UserModel, Depends(require_roles(Role.ADMIN))],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    date_from: str | None = Query(None, alias="from"),
    date_to: str | None = Query(None, alias="to"),
) -> ApiResponse:
    summary = await _service.summary(
        db, _parse_bound(date_from, "from"), _parse_bound(date_to, "to")
    )
    return success_response(SummaryResponse.from_domain(summary).model_dump(mode="json"), request)
