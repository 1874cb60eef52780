"""Check-in request/response schemas."""

from pydantic import Field

from daily_checkin.engine.types import CheckinResult
from daily_checkin.schemas.common import BaseSchema, PaginationMeta


class RewardSchema(BaseSchema):
    base_exp: int = Field(..., alias="baseExp")
    level_bonus_exp: int = Field(..., alias="levelBonusExp")
    streak_bonus_exp: int = Field(..., alias="streakBonusExp")
    total_exp: int = Field(..., alias="totalExp")
    code_amount: str = Field(..., alias="codeAmount", description="Computed amount, 2 decimals")


class LevelUpSchema(BaseSchema):
    from_level: int = Field(..., alias="fromLevel")
    to_level: int = Field(..., alias="toLevel")


class CheckinResponse(BaseSchema):
    """Result of POST /checkin."""

    status: str = Field(..., description="completed | pending_distribution | already_checked_in")
    message: str
    check_in_date: str = Field(..., alias="checkInDate")
    experience_gained: int = Field(..., alias="experienceGained")
    consecutive_days: int = Field(..., alias="consecutiveDays")
    code: str | None = None
    code_amount: str | None = Field(None, alias="codeAmount")
    reward: RewardSchema | None = None
    level_up: LevelUpSchema | None = Field(None, alias="levelUp")
    current_level: int | None = Field(None, alias="currentLevel")
    experience: int | None = None

    @classmethod
    def from_result(cls, result: CheckinResult, message: str) -> "CheckinResponse":
        return cls(
            status=result.status.value,
            message=message,
            check_in_date=result.check_in_date.isoformat(),
            experience_gained=result.experience_gained,
            consecutive_days=result.consecutive_days,
            code=result.code,
            code_amount=str(result.code_amount) if result.code_amount is not None else None,
            reward=(
                RewardSchema.model_validate(result.reward.to_dict())
                if result.reward is not None
                else None
            ),
            level_up=(
                LevelUpSchema(
                    from_level=result.level_up.from_level,
                    to_level=result.level_up.to_level,
                )
                if result.level_up is not None
                else None
            ),
            current_level=result.current_level,
            experience=result.experience,
        )


class CheckinRecordSchema(BaseSchema):
    id: int
    date: str
    consecutive_days: int = Field(..., alias="consecutiveDays")
    reward: RewardSchema
    status: str
    code: str | None = None
    amount: str
    checked_at: str | None = Field(None, alias="checkedAt")


class CheckinStats(BaseSchema):
    total_checkins: int = Field(..., alias="totalCheckins")
    consecutive_checkins: int = Field(..., alias="consecutiveCheckins")
    max_consecutive: int = Field(..., alias="maxConsecutive")
    experience: int
    level: int
    last_checkin_date: str | None = Field(None, alias="lastCheckinDate")
    last_30_days: int = Field(..., alias="last30Days")
    code_count: int = Field(..., alias="codeCount")
    total_amount: str = Field(..., alias="totalAmount")


class NextBonus(BaseSchema):
    days_remaining: int = Field(..., alias="daysRemaining")
    threshold: int
    bonus: str


class NextLevel(BaseSchema):
    level: int
    required_experience: int = Field(..., alias="requiredExperience")


class CheckinStatusResponse(BaseSchema):
    checked_in: bool = Field(..., alias="checkedIn")
    today: str
    record: CheckinRecordSchema | None = None
    stats: CheckinStats
    next_bonus: NextBonus | None = Field(None, alias="nextBonus")
    next_level: NextLevel | None = Field(None, alias="nextLevel")


class CheckinHistoryResponse(BaseSchema):
    items: list[CheckinRecordSchema]
    pagination: PaginationMeta


class CalendarDay(BaseSchema):
    date: str
    status: str


class CalendarResponse(BaseSchema):
    year: int
    month: int
    first_day: str = Field(..., alias="firstDay")
    last_day: str = Field(..., alias="lastDay")
    days: list[CalendarDay]
    count: int
