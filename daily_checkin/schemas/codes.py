"""Redemption code history schemas."""

from pydantic import Field

from daily_checkin.schemas.common import BaseSchema, PaginationMeta


class CodeItem(BaseSchema):
    id: int
    code: str
    amount: str
    distribution_type: str | None = Field(None, alias="distributionType")
    distributed_at: str | None = Field(None, alias="distributedAt")
    is_used: bool = Field(..., alias="isUsed")
    used_at: str | None = Field(None, alias="usedAt")


class CodeListResponse(BaseSchema):
    items: list[CodeItem]
    pagination: PaginationMeta


class CodeSearchResponse(BaseSchema):
    query: str
    items: list[CodeItem]
