"""Bearer token checks.

Login (OAuth) happens in the identity bridge, which issues short-lived JWT
access tokens whose ``sub`` claim is the user id. This service only reads
them; ``create_access_token`` exists for the bridge and for tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from daily_checkin.config import get_settings
from daily_checkin.logging_config import get_logger
from daily_checkin.utils.errors import AuthenticationError, ErrorCode

logger = get_logger(__name__)

ACCESS_TOKEN_TYPE = "access"

_REQUIRED_CLAIMS = {"require_exp": True, "require_sub": True, "require_iat": True}


def create_access_token(
    user_id: str,
    expires_in: timedelta | None = None,
    **claims: Any,
) -> str:
    """Issue an access token for ``user_id``.

    Extra keyword arguments become claims; they may override ``type`` but
    never the subject or the timestamps.
    """
    settings = get_settings()
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_in or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    payload = {
        "type": ACCESS_TOKEN_TYPE,
        **claims,
        "sub": user_id,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def read_access_token(token: str) -> dict[str, Any]:
    """Verify a bearer token and return its claims.

    Raises:
        AuthenticationError: TOKEN_EXPIRED once the token has expired,
            AUTH_INVALID_TOKEN for any other verification failure
    """
    if not token:
        raise _rejected("empty token")

    settings = get_settings()
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options=_REQUIRED_CLAIMS,
        )
    except ExpiredSignatureError:
        raise AuthenticationError(ErrorCode.TOKEN_EXPIRED, "Token has expired")
    except JWTError as e:
        raise _rejected(type(e).__name__)

    if claims.get("type") != ACCESS_TOKEN_TYPE:
        raise _rejected(f"token type {claims.get('type')!r}")
    return claims


def _rejected(reason: str) -> AuthenticationError:
    logger.debug("access_token_rejected", reason=reason)
    return AuthenticationError(ErrorCode.AUTH_INVALID_TOKEN, "Invalid or expired token")
