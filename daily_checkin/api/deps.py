"""Request dependencies: the checked-in user, the admin key and the cache."""

import secrets
from typing import Annotated

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from daily_checkin.config import get_settings
from daily_checkin.logging_config import bind_context, get_logger
from daily_checkin.models.user import User, UserStatus
from daily_checkin.services.cache import StatusCache
from daily_checkin.utils.db import get_db
from daily_checkin.utils.errors import (
    AccountInactiveError,
    AdminAuthError,
    AuthenticationError,
    ErrorCode,
)
from daily_checkin.utils.redis_client import get_redis
from daily_checkin.utils.security import read_access_token

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Resolve the bearer token to an active user.

    Raises:
        AuthenticationError: Missing or invalid token, or unknown user
        AccountInactiveError: The account is suspended or banned
    """
    if credentials is None:
        raise AuthenticationError(ErrorCode.AUTH_REQUIRED, "Authentication required")

    user_id = read_access_token(credentials.credentials)["sub"]

    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError(ErrorCode.AUTH_USER_NOT_FOUND, "User not found")
    if user.status != UserStatus.ACTIVE.value:
        raise AccountInactiveError(user.id, user.status)

    bind_context(user_id=user.id)
    return user


def verify_admin_key(x_api_key: Annotated[str | None, Header()] = None) -> str:
    """Check the ``X-API-Key`` header and return the operator label for logs."""
    expected = get_settings().admin_api_key
    if not x_api_key or not secrets.compare_digest(x_api_key, expected):
        logger.warning("admin_auth_failed", key_present=bool(x_api_key))
        raise AdminAuthError()
    bind_context(operator="admin")
    return "admin"


def get_status_cache() -> StatusCache:
    settings = get_settings()
    return StatusCache(
        get_redis(),
        settings.status_cache_ttl,
        settings.status_cache_unchecked_ttl,
    )


CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
AdminOperator = Annotated[str, Depends(verify_admin_key)]
Cache = Annotated[StatusCache, Depends(get_status_cache)]
