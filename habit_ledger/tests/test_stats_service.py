"""
Tests for StatsService.

Tests cover:
1. Completion rate over a lookback window
2. Today's completion rate and daily goal
3. Weekly progress and monthly trend
4. Habit summary
"""
import pytest
from datetime import timedelta

from habit_ledger.exceptions import HabitNotFoundException, ValidationException
from habit_ledger.services.stats_service import StatsService
from habit_ledger.tests.conftest import create_entry, create_habit


class TestCompletionRate:
    """Tests for completion_rate"""

    def test_three_of_seven(self, db_session, clock, habit, today):
        """3 complete days among 7 in-window entries with a 7-day window"""
        for offset in range(7):
            value = 10 if offset in (0, 2, 5) else 1
            create_entry(db_session, habit, today - timedelta(days=offset), value)

        rate = StatsService(db_session, clock).completion_rate(habit.id, window_days=7)
        assert rate == pytest.approx(3 / 7)

    def test_no_entries_is_zero(self, db_session, clock, habit):
        assert StatsService(db_session, clock).completion_rate(habit.id) == 0.0

    def test_only_incomplete_entries_is_zero(self, db_session, clock, habit, today):
        create_entry(db_session, habit, today, 1)
        assert StatsService(db_session, clock).completion_rate(habit.id, 7) == 0.0

    def test_entries_outside_window_ignored(self, db_session, clock, habit, today):
        create_entry(db_session, habit, today - timedelta(days=8))
        create_entry(db_session, habit, today - timedelta(days=7))
        create_entry(db_session, habit, today)

        rate = StatsService(db_session, clock).completion_rate(habit.id, window_days=7)
        assert rate == pytest.approx(2 / 7)

    def test_divides_by_window_not_entries(self, db_session, clock, habit, today):
        create_entry(db_session, habit, today)
        rate = StatsService(db_session, clock).completion_rate(habit.id)
        assert rate == pytest.approx(1 / 30)

    def test_full_window_is_capped_at_one(self, db_session, clock, habit, today):
        """31 complete days fill a 30-day window including both ends"""
        for offset in range(31):
            create_entry(db_session, habit, today - timedelta(days=offset))

        assert StatsService(db_session, clock).completion_rate(habit.id, 30) == 1.0

    @pytest.mark.parametrize("window", [0, -3])
    def test_non_positive_window_rejected(self, db_session, clock, habit, window):
        with pytest.raises(ValidationException):
            StatsService(db_session, clock).completion_rate(habit.id, window)


class TestDailyFigures:
    """Tests for today's completion rate and daily goal"""

    def test_today_completion_rate(self, db_session, clock, today):
        habits = [create_habit(db_session, name=f"Habit {i}") for i in range(4)]
        create_entry(db_session, habits[0], today)
        create_entry(db_session, habits[1], today, 2)
        create_entry(db_session, habits[2], today)

        assert StatsService(db_session, clock).today_completion_rate() == pytest.approx(0.5)

    def test_no_habits_gives_zero(self, db_session, clock):
        assert StatsService(db_session, clock).today_completion_rate() == 0.0

    def test_inactive_habits_not_counted(self, db_session, clock, habit, today):
        retired = create_habit(db_session, name="Old", is_active=False)
        create_entry(db_session, retired, today)
        create_entry(db_session, habit, today)

        assert StatsService(db_session, clock).today_completion_rate() == 1.0

    def test_daily_goal_progress(self, db_session, clock, today):
        habits = [create_habit(db_session, name=f"Habit {i}") for i in range(4)]
        create_entry(db_session, habits[0], today)
        create_entry(db_session, habits[1], today)

        progress = StatsService(db_session, clock).daily_goal_progress()

        assert progress["completed"] == 2
        assert progress["goal"] == 3
        assert progress["progress"] == pytest.approx(2 / 3)
        assert not progress["is_met"]


class TestTrends:
    """Tests for weekly progress and monthly trend"""

    def test_weekly_progress_oldest_first(self, db_session, clock, habit, today):
        other = create_habit(db_session, name="Walk")
        create_entry(db_session, habit, today - timedelta(days=6))
        create_entry(db_session, other, today - timedelta(days=6))
        create_entry(db_session, habit, today)

        week = StatsService(db_session, clock).weekly_progress()

        assert week == [1.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.5]

    def test_trend_without_history(self, db_session, clock, habit):
        assert StatsService(db_session, clock).monthly_trend() == 0.0

    def test_trend_with_only_recent_activity(self, db_session, clock, habit, today):
        create_entry(db_session, habit, today)
        assert StatsService(db_session, clock).monthly_trend() == 1.0

    def test_trend_growth_and_decline(self, db_session, clock, habit, today):
        # Previous window: 4 completions, recent window: 6
        for offset in range(30, 34):
            create_entry(db_session, habit, today - timedelta(days=offset))
        for offset in range(6):
            create_entry(db_session, habit, today - timedelta(days=offset))

        assert StatsService(db_session, clock).monthly_trend() == pytest.approx(0.5)

    def test_trend_clamped(self, db_session, clock, habit, today):
        create_entry(db_session, habit, today - timedelta(days=40))
        for offset in range(5):
            create_entry(db_session, habit, today - timedelta(days=offset))

        assert StatsService(db_session, clock).monthly_trend() == 1.0


class TestHabitStats:
    """Tests for habit_stats and progress_percentage"""

    def test_summary(self, db_session, clock, habit, today, default_settings):
        for offset in range(3):
            create_entry(db_session, habit, today - timedelta(days=offset))

        stats = StatsService(db_session, clock).habit_stats(habit.id)

        assert stats["current_streak"] == 3
        assert stats["longest_streak"] == 3
        assert stats["total_completions"] == 3
        assert stats["window_days"] == 30
        assert stats["completion_rate"] == pytest.approx(3 / 30)
        assert stats["completed_today"]
        assert stats["today_percentage"] == 1.0

    def test_partial_progress_percentage(self, db_session, clock, habit, today):
        create_entry(db_session, habit, today, 4)
        assert StatsService(db_session, clock).progress_percentage(habit.id) == pytest.approx(0.4)

    def test_overshoot_capped(self, db_session, clock, habit, today):
        create_entry(db_session, habit, today, 25)
        assert StatsService(db_session, clock).progress_percentage(habit.id) == 1.0

    def test_unknown_habit(self, db_session, clock):
        with pytest.raises(HabitNotFoundException):
            StatsService(db_session, clock).habit_stats(404)
