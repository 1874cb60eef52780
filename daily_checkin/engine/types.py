"""Value types shared by the check-in rules and the allocation service."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any


class CheckinStatus(str, Enum):
    """Outcome of a check-in attempt for one (user, calendar day)."""

    COMPLETED = "completed"
    PENDING_DISTRIBUTION = "pending_distribution"
    ALREADY_CHECKED_IN = "already_checked_in"


class DistributionType(str, Enum):
    """How a redemption code reached its owner."""

    CHECKIN = "checkin"
    GIFT = "gift"
    BATCH = "batch"
    PENDING_RESOLVE = "pending_resolve"


@dataclass(frozen=True)
class RewardBreakdown:
    """Reward computed for one check-in.

    Attributes:
        base_exp: Fixed experience for checking in
        level_bonus_exp: floor(base_exp * level * 0.1)
        streak_bonus_exp: 2 experience per consecutive day
        total_exp: Sum of the three experience parts
        code_amount: Face value owed to the user (2 decimals)
    """

    base_exp: int
    level_bonus_exp: int
    streak_bonus_exp: int
    total_exp: int
    code_amount: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "baseExp": self.base_exp,
            "levelBonusExp": self.level_bonus_exp,
            "streakBonusExp": self.streak_bonus_exp,
            "totalExp": self.total_exp,
            "codeAmount": str(self.code_amount),
        }


@dataclass(frozen=True)
class LevelUpEvent:
    """A level transition produced by a single experience gain."""

    from_level: int
    to_level: int
    experience: int

    @property
    def levels_gained(self) -> int:
        return self.to_level - self.from_level


@dataclass
class CheckinResult:
    """What the allocation service returns to the HTTP layer."""

    status: CheckinStatus
    check_in_date: date
    experience_gained: int
    consecutive_days: int
    code: str | None = None
    code_amount: Decimal | None = None
    reward: RewardBreakdown | None = None
    level_up: LevelUpEvent | None = None
    current_level: int | None = None
    experience: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_new(self) -> bool:
        return self.status is not CheckinStatus.ALREADY_CHECKED_IN
