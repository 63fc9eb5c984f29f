"""Bearer tokens for the marketplace API (HS256, shared JWT_SECRET).

Access tokens carry the user's role as a routing hint for clients; the
server re-reads the role from the users table on every request. Refresh
tokens only carry the subject. There is no revocation list.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.tc_common.errors import InvalidCredentialsError, InvalidRefreshTokenError

ACCESS = "access"
REFRESH = "refresh"

_TTL = {
    ACCESS: timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    REFRESH: timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS),
}
_ERRORS = {ACCESS: InvalidCredentialsError, REFRESH: InvalidRefreshTokenError}


def _sign(user_id: str, token_type: str, **claims: str) -> str:
    issued = datetime.now(UTC)
    body = {"sub": user_id, "type": token_type, "iat": issued, "exp": issued + _TTL[token_type]}
    body.update(claims)
    return str(jwt.encode(body, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM))


def create_access_token(user_id: str, role: str | None = None) -> str:
    if role is None:
        return _sign(user_id, ACCESS)
    return _sign(user_id, ACCESS, role=role)


def create_refresh_token(user_id: str) -> str:
    return _sign(user_id, REFRESH)


def decode_token(token: str, expected_type: str) -> dict[str, str]:
    """Verify signature, expiry and token type.

    A refresh token presented as an access token (or the reverse) is
    rejected the same way as a forged one. Raises InvalidCredentialsError
    for access tokens and InvalidRefreshTokenError for refresh tokens.
    """
    error = _ERRORS[expected_type]
    try:
        claims: dict[str, str] = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise error() from None
    if claims.get("type") != expected_type:
        raise error()
    return claims
