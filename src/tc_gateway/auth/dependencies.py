"""FastAPI dependencies: get_current_user, require_roles, client_ip.

Usage in any protected router:
    from src.tc_gateway.auth.dependencies import get_current_user, require_roles

    @router.get("/protected")
    async def protected(user: UserModel = Depends(get_current_user)):
        ...

    @router.post("/admin-only")
    async def admin_only(user: UserModel = Depends(require_roles(Role.ADMIN))):
        ...
"""

from collections.abc import Awaitable, Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tc_common.database import get_db_session
from src.tc_common.enums import Role
from src.tc_common.errors import AccountDisabledError, ForbiddenError, InvalidCredentialsError
from src.tc_gateway.auth.jwt_handler import decode_token
from src.tc_gateway.user.db_models import UserModel

# tokenUrl tells Swagger UI where to get a token (used for the "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    """Extract and validate the JWT Bearer token, return the UserModel.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    Raises HTTP 403 (AccountDisabledError) if the user account is disabled.
    """
    try:
        payload = decode_token(token, expected_type="access")
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id: str | None = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION

    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _CREDENTIALS_EXCEPTION

    if not user.is_active:
        raise AccountDisabledError()

    return user


def require_roles(*roles: Role) -> Callable[..., Awaitable[UserModel]]:
    """Build a dependency that admits only the given roles (403 otherwise)."""
    allowed = {r.value for r in roles}

    async def _guard(current_user: UserModel = Depends(get_current_user)) -> UserModel:
        if current_user.role not in allowed:
            raise ForbiddenError(f"Requires role: {', '.join(sorted(allowed))}")
        return current_user

    return _guard


def client_ip(request: Request) -> str | None:
    """Client address for audit rows and rate-limit keys.

    X-Forwarded-For is only read when TRUSTED_PROXY_COUNT proxies sit in front
    of the app; each appends its peer, so the client is that many hops from
    the right. Anything left of it is caller-supplied and ignored.
    """
    hops = settings.TRUSTED_PROXY_COUNT
    if hops > 0:
        header = request.headers.get("x-forwarded-for", "")
        forwarded = [h.strip() for h in header.split(",") if h.strip()]
        if len(forwarded) >= hops:
            return forwarded[-hops]
    return request.client.host if request.client else None
