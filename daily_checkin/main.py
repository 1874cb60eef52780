"""FastAPI application for daily check-ins and redemption code rewards."""

import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from daily_checkin.api import api_router
from daily_checkin.api.deps import DbSession
from daily_checkin.config import get_settings
from daily_checkin.logging_config import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)
from daily_checkin.middleware.prometheus import setup_prometheus
from daily_checkin.middleware.sentry import init_sentry
from daily_checkin.schemas.common import error_envelope
from daily_checkin.services.distribution import DistributionService
from daily_checkin.utils.db import close_db, ping_database, verify_connection
from daily_checkin.utils.errors import CheckinAppError, ErrorCode
from daily_checkin.utils.json_utils import ORJSONResponse
from daily_checkin.utils.redis_client import close_redis, init_redis, redis_health

APP_VERSION = "1.0.0"
API_V1_PREFIX = "/api/v1"

settings = get_settings()
configure_logging(settings)
logger = get_logger(__name__)

if init_sentry(settings, APP_VERSION):
    logger.info("sentry_initialized", environment=settings.app_env)
elif settings.app_env == "production":
    logger.warning("sentry_dsn_missing")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    await verify_connection()
    redis = await init_redis()
    logger.info(
        "startup_complete",
        version=APP_VERSION,
        status_cache="on" if redis is not None else "off",
        reporting_utc_offset_hours=settings.reporting_utc_offset_hours,
    )

    yield

    await close_redis()
    await close_db()
    logger.info("shutdown_complete")


app = FastAPI(
    title="Daily Check-in API",
    version=APP_VERSION,
    description="Daily check-in rewards and redemption code distribution",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
)

setup_prometheus(app, app_version=APP_VERSION)


# =============================================================================
# Middleware
# =============================================================================


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Echoes or assigns X-Request-ID and binds it as the log trace_id."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        clear_context()
        bind_context(trace_id=request_id)

        started = time.perf_counter()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response


app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.cors_origins.split(",")],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID", "X-API-Key"],
    expose_headers=["X-Request-ID", "Retry-After"],
)


# =============================================================================
# Error Handlers
# =============================================================================


def _trace_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")


@app.exception_handler(CheckinAppError)
async def app_error_handler(request: Request, exc: CheckinAppError) -> ORJSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log("app_error", code=exc.code, message=exc.message, status_code=exc.status_code)

    return ORJSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.code, exc.message, exc.details, _trace_id(request)),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_envelope(
            ErrorCode.VALIDATION_ERROR.value,
            "Request validation failed",
            {"errors": errors},
            _trace_id(request),
        ),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=exc.status_code,
        content=error_envelope("HTTP_ERROR", str(exc.detail), trace_id=_trace_id(request)),
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> ORJSONResponse:
    logger.exception("unexpected_error", error_type=type(exc).__name__)

    message = f"{type(exc).__name__}: {exc}" if settings.app_debug else "Internal server error"
    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_envelope(ErrorCode.INTERNAL_ERROR.value, message, trace_id=_trace_id(request)),
    )


# =============================================================================
# Routes
# =============================================================================


@app.get("/health", tags=["Health"])
async def health_check(db: DbSession):
    """Database and Redis reachability plus the current stock levels.

    503 only when the database is down; Redis is optional.
    """
    body: dict[str, Any] = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc),
        "version": APP_VERSION,
        "services": {"database": "healthy", "redis": await redis_health()},
    }

    try:
        await ping_database(db)
        distribution = DistributionService(db)
        body["inventory"] = {
            "availableCodes": await distribution.inventory.count_available(),
            "pendingDistributions": await distribution.count_unresolved(),
        }
    except SQLAlchemyError as e:
        logger.error("database_health_check_failed", error=str(e))
        await db.rollback()
        body["status"] = "unhealthy"
        body["services"]["database"] = "unhealthy"
        return ORJSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)

    return body


app.include_router(api_router, prefix=API_V1_PREFIX)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    return {
        "name": "Daily Check-in API",
        "version": APP_VERSION,
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "daily_checkin.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_debug,
        log_level=settings.log_level.lower(),
    )
