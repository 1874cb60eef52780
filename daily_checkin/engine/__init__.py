"""Pure check-in rules: streaks, rewards and levels."""

from daily_checkin.engine.levels import DEFAULT_LEVEL_TABLE, check_level_up
from daily_checkin.engine.reward import DEFAULT_POLICY, RewardPolicy, compute_reward
from daily_checkin.engine.streak import compute_streak, reporting_today
from daily_checkin.engine.types import (
    CheckinResult,
    CheckinStatus,
    DistributionType,
    LevelUpEvent,
    RewardBreakdown,
)

__all__ = [
    "DEFAULT_LEVEL_TABLE",
    "check_level_up",
    "DEFAULT_POLICY",
    "RewardPolicy",
    "compute_reward",
    "compute_streak",
    "reporting_today",
    "CheckinResult",
    "CheckinStatus",
    "DistributionType",
    "LevelUpEvent",
    "RewardBreakdown",
]
