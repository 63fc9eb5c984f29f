"""Redis fixed-window rate limiting middleware.

Rules (per client IP, per minute):
  - Auth endpoints (/auth/*):              RATE_LIMIT_AUTH_PER_MIN  (anti brute-force)
  - Trade endpoints (/checkout, /holds):   RATE_LIMIT_TRADE_PER_MIN (anti spam)
  - Everything else: unlimited

Key pattern: "ratelimit:{group}:{ip}:{window}". Redis INCR + EXPIRE.
Redis outages fail open with a warning; the marketplace keeps serving.
"""

import logging
import time

from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from config.settings import settings
from src.tc_common.errors import RateLimitError
from src.tc_common.redis_client import get_redis
from src.tc_common.response import error_response
from src.tc_gateway.auth.dependencies import client_ip

logger = logging.getLogger("tc.ratelimit")

_WINDOW_SECONDS = 60


def classify_path(path: str) -> tuple[str, int] | None:
    """Map a request path to (group, limit), or None when unlimited."""
    if path.startswith("/api/v1/auth/"):
        return "auth", settings.RATE_LIMIT_AUTH_PER_MIN
    if path.startswith("/api/v1/checkout") or path.startswith("/api/v1/holds"):
        return "trade", settings.RATE_LIMIT_TRADE_PER_MIN
    return None


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rule = classify_path(request.url.path)
        if not settings.RATE_LIMIT_ENABLED or rule is None or request.method == "GET":
            return await call_next(request)

        group, limit = rule
        window = int(time.time()) // _WINDOW_SECONDS
        ip = client_ip(request) or "unknown"
        key = f"ratelimit:{group}:{ip}:{window}"
        try:
            redis = await get_redis()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, _WINDOW_SECONDS)
        except RedisError as exc:
            logger.warning("Rate limiter unavailable, allowing request: %s", exc)
            return await call_next(request)

        if count > limit:
            retry_after = _WINDOW_SECONDS - int(time.time()) % _WINDOW_SECONDS
            err = RateLimitError(retry_after)
            return JSONResponse(
                status_code=err.http_status,
                content=error_response(err.code, err.message, request).model_dump(),
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
