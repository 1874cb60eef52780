"""Pydantic schemas for API requests and responses."""

from daily_checkin.schemas.checkin import (
    CalendarResponse,
    CheckinHistoryResponse,
    CheckinResponse,
    CheckinStatusResponse,
)
from daily_checkin.schemas.codes import CodeItem, CodeListResponse, CodeSearchResponse
from daily_checkin.schemas.common import (
    ErrorDetail,
    ErrorResponse,
    PaginationMeta,
    error_envelope,
)

__all__ = [
    "CalendarResponse",
    "CheckinHistoryResponse",
    "CheckinResponse",
    "CheckinStatusResponse",
    "CodeItem",
    "CodeListResponse",
    "CodeSearchResponse",
    "ErrorDetail",
    "ErrorResponse",
    "PaginationMeta",
    "error_envelope",
]
