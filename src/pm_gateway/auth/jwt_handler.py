"""JWT handling for caller identity.

The caller identity is the token's ``sub`` claim. Tokens are normally issued
by the host's identity provider; ``create_access_token`` exists for local
development, smoke scripts and tests.

MVP NOTE: Using HS256 (symmetric HMAC). All services share one JWT_SECRET.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.pm_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)

# users.id and every user_id column are VARCHAR(64).
MAX_CALLER_ID_LENGTH = 64


def create_access_token(caller_id: str) -> str:
    """Issue a short-lived access token (default: 30 min)."""
    now = datetime.now(UTC)
    payload = {
        "sub": caller_id,
        "type": "access",
        "iat": now,
        "exp": now + _ACCESS_EXPIRE,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_caller_id(token: str) -> str:
    """Validate an access token and return its ``sub`` claim.

    Raises:
        InvalidCredentialsError: token invalid, expired, of the wrong type,
            missing ``sub``, or ``sub`` longer than MAX_CALLER_ID_LENGTH.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access":
        raise InvalidCredentialsError()
    caller_id = payload.get("sub")
    if not caller_id:
        raise InvalidCredentialsError()
    caller_id = str(caller_id)
    if len(caller_id) > MAX_CALLER_ID_LENGTH:
        raise InvalidCredentialsError()
    return caller_id
