"""Admin request/response schemas."""

from decimal import Decimal

from pydantic import Field, field_validator

from daily_checkin.schemas.common import BaseSchema


# =============================================================================
# Inventory
# =============================================================================


class UploadCodesRequest(BaseSchema):
    content: str = Field(..., min_length=1, description="Codes separated by commas, semicolons or whitespace")
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    filename: str | None = Field(None, max_length=255)


class UploadCodesResponse(BaseSchema):
    batch_id: int = Field(..., alias="batchId")
    amount: str
    total: int
    inserted: int
    duplicates: int
    invalid: int
    invalid_samples: list[str] = Field(default_factory=list, alias="invalidSamples")


class GenerateCodesRequest(BaseSchema):
    count: int = Field(..., ge=1)
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)


class GenerateCodesResponse(BaseSchema):
    batch_id: int = Field(..., alias="batchId")
    amount: str
    count: int
    codes: list[str]


class InventoryAmount(BaseSchema):
    amount: str
    total: int
    available: int
    distributed: int


class InventoryResponse(BaseSchema):
    amounts: list[InventoryAmount]
    count_available: int = Field(..., alias="countAvailable")


# =============================================================================
# Distribution
# =============================================================================


class GiftRequest(BaseSchema):
    user_ids: list[str] = Field(..., alias="userIds", min_length=1)
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    message: str | None = Field(None, max_length=500)


class BatchDistributeRequest(BaseSchema):
    user_ids: list[str] = Field(..., alias="userIds", min_length=1)
    amount: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    confirm: bool = False


class DistributedItem(BaseSchema):
    user_id: str = Field(..., alias="userId")
    code: str
    amount: str


class DistributionResponse(BaseSchema):
    distribution_type: str = Field(..., alias="distributionType")
    distributed: int
    items: list[DistributedItem]


# =============================================================================
# Pending distributions
# =============================================================================


class PendingItem(BaseSchema):
    id: int
    user_id: str = Field(..., alias="userId")
    check_in_id: int = Field(..., alias="checkInId")
    check_in_date: str = Field(..., alias="checkInDate")
    computed_amount: str = Field(..., alias="computedAmount")
    created_at: str | None = Field(None, alias="createdAt")


class PendingListResponse(BaseSchema):
    items: list[PendingItem]
    total: int


class ResolvePendingRequest(BaseSchema):
    limit: int | None = Field(None, ge=1, le=1000)


class ResolvedItem(BaseSchema):
    pending_id: int = Field(..., alias="pendingId")
    user_id: str = Field(..., alias="userId")
    check_in_date: str = Field(..., alias="checkInDate")
    code: str
    amount: str


class ResolvePendingResponse(BaseSchema):
    resolved: int
    remaining: int
    items: list[ResolvedItem]


# =============================================================================
# Levels
# =============================================================================


class LevelEntry(BaseSchema):
    level: int = Field(..., ge=1)
    required_experience: int = Field(..., ge=0, alias="requiredExperience")


class LevelTableResponse(BaseSchema):
    levels: list[LevelEntry]
    is_default: bool = Field(..., alias="isDefault")


class LevelTableUpdate(BaseSchema):
    levels: list[LevelEntry] = Field(..., min_length=1)

    @field_validator("levels")
    @classmethod
    def validate_unique_levels(cls, v: list[LevelEntry]) -> list[LevelEntry]:
        levels = [entry.level for entry in v]
        if len(levels) != len(set(levels)):
            raise ValueError("levels must be unique")
        return v
