"""Check-in API."""

from fastapi import APIRouter, Query, status

from daily_checkin.api.deps import Cache, CurrentUser, DbSession
from daily_checkin.engine.types import CheckinStatus
from daily_checkin.schemas.checkin import (
    CalendarResponse,
    CheckinHistoryResponse,
    CheckinResponse,
    CheckinStatusResponse,
)
from daily_checkin.schemas.common import ErrorResponse
from daily_checkin.services.checkin import CheckinService
from daily_checkin.utils.json_utils import ORJSONResponse

router = APIRouter(prefix="/checkin", tags=["Checkin"])

_MESSAGES = {
    CheckinStatus.COMPLETED: "Check-in successful",
    CheckinStatus.PENDING_DISTRIBUTION: "Check-in recorded, your code is pending distribution",
    CheckinStatus.ALREADY_CHECKED_IN: "Already checked in today",
}


@router.post(
    "",
    response_model=CheckinResponse,
    responses={
        400: {"model": CheckinResponse, "description": "Already checked in today"},
        503: {"model": ErrorResponse, "description": "Temporary failure, retry"},
    },
)
async def do_checkin(user: CurrentUser, db: DbSession, cache: Cache):
    """Check in for today.

    - One check-in per user per reporting day (UTC+8)
    - ``completed``: a code was assigned
    - ``pending_distribution``: reward recorded, code delivered later
    - ``already_checked_in`` (400): today's existing result, same code
    """
    service = CheckinService(db, cache=cache)
    result = await service.checkin(user.id)
    response = CheckinResponse.from_result(result, _MESSAGES[result.status])

    if result.status is CheckinStatus.ALREADY_CHECKED_IN:
        return ORJSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=response.model_dump(by_alias=True),
        )
    return response


@router.get("/status", response_model=CheckinStatusResponse)
async def get_checkin_status(user: CurrentUser, db: DbSession, cache: Cache):
    """Today's check-in (if any) and running statistics."""
    service = CheckinService(db, cache=cache)
    return await service.get_checkin_status(user.id)


@router.get("/history", response_model=CheckinHistoryResponse)
async def get_checkin_history(
    user: CurrentUser,
    db: DbSession,
    page: int = Query(1, ge=1),
    limit: int = Query(30, ge=1, le=100),
):
    """Check-in records, newest first."""
    service = CheckinService(db)
    return await service.get_checkin_history(user.id, page, limit)


@router.get("/calendar", response_model=CalendarResponse)
async def get_checkin_calendar(
    user: CurrentUser,
    db: DbSession,
    year: int | None = Query(None),
    month: int | None = Query(None),
):
    """Checked-in days of one month (year 2020-2100).

    Missing year or month default to the current reporting day's.
    """
    service = CheckinService(db)
    return await service.get_calendar(user.id, year, month)
