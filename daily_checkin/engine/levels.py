"""Level progression by experience thresholds."""

from collections.abc import Sequence

from daily_checkin.engine.types import LevelUpEvent

LevelTable = Sequence[tuple[int, int]]

# (level, required experience); numeric tiers only, display names live in the UI
DEFAULT_LEVEL_TABLE: tuple[tuple[int, int], ...] = (
    (1, 0),
    (2, 100),
    (3, 300),
    (4, 600),
    (5, 1000),
    (6, 1500),
    (7, 2100),
    (8, 2800),
    (9, 3600),
    (10, 4500),
    (11, 5500),
    (12, 6600),
    (13, 7800),
)


def check_level_up(
    current_level: int,
    new_experience: int,
    level_table: LevelTable = DEFAULT_LEVEL_TABLE,
) -> LevelUpEvent | None:
    """Find the level a user reaches with ``new_experience``.

    Jumps straight to the highest qualifying level above ``current_level``,
    so several thresholds crossed at once produce one event. Returns None
    when no higher level qualifies. Levels are never lost.
    """
    target = None
    for level, required_exp in level_table:
        if level > current_level and new_experience >= required_exp:
            if target is None or level > target:
                target = level
    if target is None:
        return None
    return LevelUpEvent(from_level=current_level, to_level=target, experience=new_experience)


def next_level_threshold(
    current_level: int,
    level_table: LevelTable = DEFAULT_LEVEL_TABLE,
) -> tuple[int, int] | None:
    """(level, required experience) of the nearest level above ``current_level``."""
    candidates = [(lvl, exp) for lvl, exp in level_table if lvl > current_level]
    if not candidates:
        return None
    return min(candidates)


def validate_level_table(level_table: LevelTable) -> list[str]:
    """Return problems with a level table; empty when it is usable."""
    problems: list[str] = []
    if not level_table:
        return ["level table is empty"]
    ordered = sorted(level_table)
    first_level, first_exp = ordered[0]
    if first_level != 1 or first_exp != 0:
        problems.append("level 1 must require 0 experience")
    for (prev_level, prev_exp), (level, exp) in zip(ordered, ordered[1:]):
        if level == prev_level:
            problems.append(f"duplicate level {level}")
        elif exp <= prev_exp:
            problems.append(f"level {level} must require more experience than level {prev_level}")
    return problems
