"""FastAPI dependencies: get_current_caller, require_admin.

Usage in any protected router:
    from src.cdp_gateway.auth.dependencies import get_current_caller

    @router.post("/protected")
    async def protected(caller: str = Depends(get_current_caller)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config.settings import settings
from src.cdp_common.errors import InvalidCredentialsError, UnauthorizedError
from src.cdp_gateway.auth.jwt_handler import decode_token

_bearer = HTTPBearer(auto_error=False)

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_caller(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    """Validate the Bearer token and return the caller's address.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    if credentials is None:
        raise _CREDENTIALS_EXCEPTION
    try:
        payload = decode_token(credentials.credentials)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    address = payload.get("sub")
    if not address:
        raise _CREDENTIALS_EXCEPTION
    return address


async def require_admin(caller: str = Depends(get_current_caller)) -> str:
    """Verify the caller is the configured admin address (HTTP 403 otherwise)."""
    if caller != settings.ADMIN_ADDRESS:
        raise UnauthorizedError(caller, "call admin endpoints")
    return caller
