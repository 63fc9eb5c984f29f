"""Scheduled job endpoints, called by an external scheduler.

Authenticated by a shared secret in the x-cron-secret header. With
CRON_SECRET unset every call is rejected.
"""

import hmac
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tc_admin.application.service import CronResult
from src.tc_admin.application.service import admin_service as _service
from src.tc_common.database import get_db_session
from src.tc_common.errors import UnauthorizedError
from src.tc_common.response import ApiResponse, success_response

router = APIRouter(prefix="/cron", tags=["cron"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def require_cron_secret(
    x_cron_secret: str | None = Header(None, alias="x-cron-secret"),
) -> None:
    if not settings.CRON_SECRET or not x_cron_secret:
        raise UnauthorizedError("Cron secret required")
    if not hmac.compare_digest(x_cron_secret, settings.CRON_SECRET):
        raise UnauthorizedError("Invalid cron secret")


CronAuth = Annotated[None, Depends(require_cron_secret)]


@router.post("/reclaim-holds")
async def reclaim_holds(request: Request, _auth: CronAuth, db: DbSession) -> ApiResponse:
    result = await _service.reclaim_holds(db)
    data = CronResult(job="reclaim-holds", ok=True, detail=result.model_dump(mode="json"))
    return success_response(data.model_dump(mode="json"), request)


@router.post("/daily-summary")
async def daily_summary(request: Request, _auth: CronAuth, db: DbSession) -> ApiResponse:
    delivered, summary = await _service.daily_summary(db)
    data = CronResult(
        job="daily-summary",
        ok=delivered,
        detail={"delivered": delivered, "summary": summary.model_dump(mode="json")},
    )
    return success_response(data.model_dump(mode="json"), request)
