"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.tc_admin.api.cron_router import router as cron_router
from src.tc_admin.api.router import router as admin_router
from src.tc_audit.api.router import router as audit_router
from src.tc_common.database import engine
from src.tc_common.errors import AppError, RateLimitError
from src.tc_common.redis_client import close_redis, get_redis
from src.tc_common.response import error_response
from src.tc_company.api.admin_router import router as company_admin_router
from src.tc_company.api.router import router as company_router
from src.tc_gateway.api.router import router as auth_router
from src.tc_gateway.middleware.rate_limit import RateLimitMiddleware
from src.tc_gateway.middleware.request_log import RequestLogMiddleware
from src.tc_hold.api.router import router as hold_router
from src.tc_inventory.api.router import router as inventory_router
from src.tc_order.api.router import router as order_router
from src.tc_payment.api.router import router as payment_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections. Shutdown: dispose."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    yield
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

# Starlette runs the last-added middleware first: request ids exist before rate limiting
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, request)
    headers = {"Retry-After": str(exc.retry_after)} if isinstance(exc, RateLimitError) else None
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
        headers=headers,
    )


for _router in (
    auth_router,
    company_router,
    company_admin_router,
    inventory_router,
    hold_router,
    order_router,
    payment_router,
    audit_router,
    admin_router,
    cron_router,
):
    app.include_router(_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
