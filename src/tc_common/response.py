"""ApiResponse envelope shared by every endpoint and the error handlers.

    {"code": 0, "message": "success", "data": {...}, "timestamp": "...", "request_id": "req_..."}

code is 0 on success and the AppError code otherwise; data is null on error.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import Request, Response
from pydantic import BaseModel, Field


def _new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=_new_request_id)


def request_id_of(request: Request | None) -> str:
    """The id RequestLogMiddleware stamped on the request, or a fresh one."""
    if request is None:
        return _new_request_id()
    return getattr(request.state, "request_id", None) or _new_request_id()


def success_response(
    data: Any = None, request: Request | None = None, message: str = "success"
) -> ApiResponse:
    return ApiResponse(code=0, message=message, data=data, request_id=request_id_of(request))


def error_response(code: int, message: str, request: Request | None = None) -> ApiResponse:
    return ApiResponse(code=code, message=message, data=None, request_id=request_id_of(request))


def csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
