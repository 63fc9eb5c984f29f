"""Access log plus request-id propagation.

An incoming X-Request-ID (from the proxy or the frontend) is reused when it
looks sane, otherwise a fresh req_<hex> id is minted. The id lands on
request.state for ApiResponse and is echoed back in the X-Request-ID header.

    INFO [POST] /api/v1/checkout -> 201 (23ms) req_a1b2c3d4e5f6
"""

import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("tc.request")

_INBOUND_ID = re.compile(r"^[A-Za-z0-9_\-]{8,64}$")


def _request_id(request: Request) -> str:
    inbound = request.headers.get("X-Request-ID", "")
    if _INBOUND_ID.match(inbound):
        return inbound
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.state.request_id = _request_id(request)
        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception(
                "[%s] %s -> unhandled error (%.0fms) %s",
                request.method,
                request.url.path,
                (time.perf_counter() - started) * 1000,
                rid,
            )
            raise

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "[%s] %s -> %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
            rid,
        )
        response.headers["X-Request-ID"] = rid
        return response
