"""Tests for level progression."""

from hypothesis import given, strategies as st

from daily_checkin.engine.levels import (
    DEFAULT_LEVEL_TABLE,
    check_level_up,
    next_level_threshold,
    validate_level_table,
)

SMALL_TABLE = [(1, 0), (2, 100), (3, 300)]


class TestCheckLevelUp:
    """Tests for check_level_up."""

    def test_skips_directly_to_highest_level(self):
        event = check_level_up(1, 320, SMALL_TABLE)

        assert event is not None
        assert event.from_level == 1
        assert event.to_level == 3
        assert event.levels_gained == 2

    def test_single_level(self):
        event = check_level_up(1, 100, SMALL_TABLE)

        assert event is not None
        assert event.to_level == 2

    def test_below_next_threshold(self):
        assert check_level_up(1, 90, SMALL_TABLE) is None

    def test_already_at_top(self):
        assert check_level_up(3, 10_000, SMALL_TABLE) is None

    def test_never_goes_down(self):
        assert check_level_up(3, 0, SMALL_TABLE) is None

    def test_unordered_table(self):
        table = [(3, 300), (1, 0), (2, 100)]
        assert check_level_up(1, 320, table).to_level == 3

    @given(
        level=st.integers(min_value=1, max_value=13),
        experience=st.integers(min_value=0, max_value=20_000),
    )
    def test_lands_on_highest_qualifying_level(self, level: int, experience: int):
        """Property: a level-up lands on the highest qualifying level."""
        event = check_level_up(level, experience)
        expected = max(lvl for lvl, required in DEFAULT_LEVEL_TABLE if experience >= required)

        if expected > level:
            assert event is not None
            assert event.to_level == expected
        else:
            assert event is None


class TestLevelHelpers:

    def test_next_level_threshold(self):
        assert next_level_threshold(1, SMALL_TABLE) == (2, 100)
        assert next_level_threshold(3, SMALL_TABLE) is None


class TestValidateLevelTable:

    def test_default_table_is_valid(self):
        assert validate_level_table(DEFAULT_LEVEL_TABLE) == []

    def test_empty_table(self):
        assert validate_level_table([]) == ["level table is empty"]

    def test_must_start_at_level_one_with_zero(self):
        assert validate_level_table([(1, 10), (2, 100)]) == [
            "level 1 must require 0 experience"
        ]

    def test_thresholds_must_increase(self):
        problems = validate_level_table([(1, 0), (2, 100), (3, 100)])
        assert problems == ["level 3 must require more experience than level 2"]

    def test_duplicate_levels(self):
        assert "duplicate level 2" in validate_level_table([(1, 0), (2, 100), (2, 200)])
