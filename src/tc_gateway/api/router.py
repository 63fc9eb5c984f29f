"""Auth API router: register, login, refresh, me.

All endpoints return ApiResponse. request_id is read from request.state
(injected by RequestLogMiddleware).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tc_common.database import get_db_session
from src.tc_common.response import ApiResponse, success_response
from src.tc_gateway.auth.dependencies import client_ip, get_current_user
from src.tc_gateway.user.db_models import UserModel
from src.tc_gateway.user.schemas import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
    UserInfo,
)
from src.tc_gateway.user.service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])
_service = UserService()


def _user_info(user: UserModel) -> UserInfo:
    return UserInfo(
        user_id=str(user.id),
        email=user.email,
        name=user.name,
        role=user.role,
        company_id=user.company_id,
    )


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    summary="User registration",
)
async def register(
    request: Request,
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    reg = await _service.register(db, body, ip=client_ip(request))
    data = RegisterResponse(
        user_id=str(reg.user.id),
        email=reg.user.email,
        role=reg.user.role,
        company_id=reg.user.company_id,
        broker_id=reg.broker_id,
        created_at=reg.user.created_at.isoformat(),
    )
    return success_response(data.model_dump(), request, message="User registered successfully")


@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="User login",
)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    user, access_token, refresh_token = await _service.login(
        db, body.email, body.password, ip=client_ip(request)
    )
    data = LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
        user=_user_info(user),
    )
    return success_response(data.model_dump(), request, message="Login successful")


@router.post(
    "/refresh",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Refresh access token",
)
async def refresh_token(
    request: Request,
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    new_access_token = await _service.refresh(db, body.refresh_token)
    data = RefreshResponse(
        access_token=new_access_token,
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )
    return success_response(data.model_dump(), request, message="Token refreshed")


@router.get("/me", response_model=ApiResponse, summary="Current user")
async def me(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
) -> ApiResponse:
    return success_response(_user_info(current_user).model_dump(), request)
