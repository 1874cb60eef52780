"""Reward policy: experience and code face value for one check-in.

Pure and deterministic. The same (consecutive_days, user_level) always
yields the same RewardBreakdown, and every output is non-decreasing in
both inputs.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Mapping

from daily_checkin.engine.types import RewardBreakdown

CENT = Decimal("0.01")
STREAK_EXP_PER_DAY = 2

DEFAULT_STREAK_BONUSES: Mapping[int, Decimal] = MappingProxyType({
    7: Decimal("0.50"),
    15: Decimal("1.00"),
    30: Decimal("2.00"),
})


@dataclass(frozen=True)
class RewardPolicy:
    """Reward constants.

    Attributes:
        base_exp: Experience every check-in earns
        code_floor: Minimum code amount
        streak_bonuses: Consecutive-day threshold -> amount added once the
            streak reaches it (the highest reached threshold applies)
        level_increment: Amount added per user level
    """

    base_exp: int = 10
    code_floor: Decimal = Decimal("1.00")
    streak_bonuses: Mapping[int, Decimal] = field(
        default_factory=lambda: DEFAULT_STREAK_BONUSES
    )
    level_increment: Decimal = Decimal("0.10")

    @classmethod
    def from_settings(cls, settings) -> "RewardPolicy":
        return cls(
            base_exp=settings.reward_base_exp,
            code_floor=Decimal(str(settings.reward_code_floor)),
            streak_bonuses=MappingProxyType({
                int(k): Decimal(str(v)) for k, v in settings.reward_streak_bonuses.items()
            }),
            level_increment=Decimal(str(settings.reward_level_increment)),
        )

    def streak_bonus(self, consecutive_days: int) -> Decimal:
        """Bonus of the highest threshold the streak has reached."""
        bonus = Decimal("0")
        for threshold in sorted(self.streak_bonuses):
            if consecutive_days >= threshold:
                bonus = self.streak_bonuses[threshold]
        return bonus

    def code_amount(self, consecutive_days: int, user_level: int) -> Decimal:
        raw = (
            self.code_floor
            + self.streak_bonus(consecutive_days)
            + self.level_increment * user_level
        )
        return raw.quantize(CENT, rounding=ROUND_HALF_UP)

    def compute(self, consecutive_days: int, user_level: int) -> RewardBreakdown:
        """Compute the reward for a check-in.

        Args:
            consecutive_days: Streak length including today's check-in
            user_level: Level before this check-in's experience is applied
        """
        base_exp = self.base_exp
        # floor(base * level * 0.1) in integer arithmetic
        level_bonus_exp = (base_exp * user_level) // 10
        streak_bonus_exp = consecutive_days * STREAK_EXP_PER_DAY
        return RewardBreakdown(
            base_exp=base_exp,
            level_bonus_exp=level_bonus_exp,
            streak_bonus_exp=streak_bonus_exp,
            total_exp=base_exp + level_bonus_exp + streak_bonus_exp,
            code_amount=self.code_amount(consecutive_days, user_level),
        )

    def next_bonus(self, consecutive_days: int) -> tuple[int, int, Decimal] | None:
        """(days remaining, threshold, bonus) of the next unreached threshold."""
        for threshold in sorted(self.streak_bonuses):
            if consecutive_days < threshold:
                return threshold - consecutive_days, threshold, self.streak_bonuses[threshold]
        return None


DEFAULT_POLICY = RewardPolicy()


def compute_reward(
    consecutive_days: int,
    user_level: int,
    policy: RewardPolicy = DEFAULT_POLICY,
) -> RewardBreakdown:
    """Module-level shortcut for ``policy.compute``."""
    return policy.compute(consecutive_days, user_level)
