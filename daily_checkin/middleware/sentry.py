"""Sentry error reporting.

Only failures worth paging on reach Sentry: unexpected exceptions, 5xx
application errors, and check-ins abandoned after their retries. Auth,
validation and inventory errors are answered to the client and dropped.
"""

import logging
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.redis import RedisIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from daily_checkin.config import Settings
from daily_checkin.utils.errors import CheckinAppError

_UNTRACED_PATHS = ("/health", "/metrics")


def init_sentry(settings: Settings, release: str) -> bool:
    """Start the SDK when ``SENTRY_DSN`` is set; returns whether it did."""
    if not settings.sentry_dsn:
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.app_env,
        release=f"daily-checkin@{release}",
        integrations=[
            FastApiIntegration(transaction_style="url"),
            SqlalchemyIntegration(),
            RedisIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        # Tracing only where the volume is representative
        traces_sample_rate=settings.sentry_traces_sample_rate
        if settings.app_env == "production"
        else 0.0,
        send_default_pii=False,
        before_send=drop_client_errors,
        before_send_transaction=drop_untraced_transactions,
    )
    return True


def drop_client_errors(event: dict, hint: dict) -> dict | None:
    exc_info = hint.get("exc_info")
    if exc_info:
        error = exc_info[1]
        if isinstance(error, CheckinAppError) and error.status_code < 500:
            return None
    return event


def drop_untraced_transactions(event: dict, hint: dict) -> dict | None:
    transaction = event.get("transaction") or ""
    if transaction.startswith(_UNTRACED_PATHS):
        return None
    return event


def capture_allocation_error(
    error: BaseException,
    user_id: str,
    check_in_date: str,
    extra: dict[str, Any] | None = None,
) -> str | None:
    """Report a check-in that could not be committed.

    Events are tagged with the reporting day so a database incident shows
    up as one spike per day rather than one issue per user.
    """
    with sentry_sdk.new_scope() as scope:
        scope.set_level("error")
        scope.set_user({"id": user_id})
        scope.set_tag("component", "allocation")
        scope.set_tag("check_in_date", check_in_date)
        scope.fingerprint = ["checkin-allocation", type(error).__name__]
        for key, value in (extra or {}).items():
            scope.set_extra(key, value)
        return sentry_sdk.capture_exception(error)
