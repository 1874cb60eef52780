"""Schema base class, pagination block and the error envelope.

Every error the API returns, whether raised by a service, by auth or by an
unexpected failure, has the shape::

    {"error": {"code": ..., "message": ..., "details": {...}}, "traceId": ...}
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class BaseSchema(BaseModel):
    """Readable from ORM rows; accepts field names as well as aliases."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class PaginationMeta(BaseSchema):
    page: int
    page_size: int = Field(..., alias="pageSize")
    total_items: int = Field(..., alias="totalItems")
    total_pages: int = Field(..., alias="totalPages")
    has_next: bool = Field(..., alias="hasNext")
    has_prev: bool = Field(..., alias="hasPrev")


class ErrorDetail(BaseModel):
    code: str = Field(..., description="Stable error code, e.g. AUTH_REQUIRED")
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error: ErrorDetail
    trace_id: str | None = Field(None, alias="traceId", description="X-Request-ID of the request")


def error_envelope(
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    trace_id: str | None = None,
) -> dict[str, Any]:
    """Error response body ready for ``ORJSONResponse``."""
    body = ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details or {}),
        trace_id=trace_id,
    )
    return body.model_dump(by_alias=True)
