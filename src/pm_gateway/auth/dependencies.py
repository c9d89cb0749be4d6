"""FastAPI dependencies resolving the caller identity.

Usage in any protected router:
    from src.pm_gateway.auth.dependencies import get_current_caller

    @router.post("/protected")
    async def protected(caller_id: str = Depends(get_current_caller)):
        ...

The identity is passed explicitly into every engine call; nothing below the
router layer looks it up from ambient state.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.pm_common.errors import InvalidCredentialsError
from src.pm_gateway.auth.jwt_handler import decode_caller_id

# Tokens come from the host's identity provider; tokenUrl is only for Swagger UI.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_caller(token: str = Depends(oauth2_scheme)) -> str:
    """Return the caller id from the Bearer token, or raise HTTP 401."""
    try:
        return decode_caller_id(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None


async def get_optional_caller(
    token: str | None = Depends(optional_oauth2_scheme),
) -> str | None:
    """Caller id when a token is present; None for anonymous requests.

    A present-but-invalid token is still rejected with HTTP 401.
    """
    if token is None:
        return None
    return await get_current_caller(token)
