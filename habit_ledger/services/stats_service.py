"""
Statistics service.
Read-only figures derived from the progress ledger: completion rates,
daily goal progress, weekly and monthly trends.
"""
from datetime import date, timedelta
from typing import Callable, List, Optional
from sqlalchemy.orm import Session

from habit_ledger.models import ProgressEntry
from habit_ledger.exceptions import HabitNotFoundException, ValidationException
from habit_ledger.repositories.habit_repository import (
    HabitRepository, ProgressEntryRepository
)
from habit_ledger.repositories.points_repository import UserRepository
from habit_ledger.repositories.settings_repository import SettingsRepository
from habit_ledger.services.date_service import DateService
from habit_ledger.services.streak_service import StreakService
from habit_ledger.constants import (
    DEFAULT_COMPLETION_WINDOW_DAYS, WEEKLY_PROGRESS_DAYS, TREND_WINDOW_DAYS
)


class StatsService:
    """Service for habit statistics"""

    def __init__(self, db: Session, today_provider: Optional[Callable[[], date]] = None):
        self.db = db
        self.habit_repo = HabitRepository()
        self.progress_repo = ProgressEntryRepository()
        self.user_repo = UserRepository()
        self.settings_repo = SettingsRepository()
        self.date_service = DateService()
        self.streak_service = StreakService(db, today_provider)

    def _today(self) -> date:
        return self.streak_service.today()

    def completion_rate(
        self,
        habit_id: int,
        window_days: int = DEFAULT_COMPLETION_WINDOW_DAYS
    ) -> float:
        """
        Share of the window's days with a complete entry.

        The window covers [today - window_days, today], which is one day
        more than window_days; the result is capped at 1. Returns 0 when
        the window holds no entries at all.
        """
        if window_days <= 0:
            raise ValidationException("window_days", "must be positive")

        entries = self.progress_history(habit_id, window_days)
        if not entries:
            return 0.0

        completed = sum(1 for entry in entries if entry.is_complete)
        return min(1.0, completed / window_days)

    def progress_history(
        self,
        habit_id: int,
        days: int = DEFAULT_COMPLETION_WINDOW_DAYS
    ) -> List[ProgressEntry]:
        """Entries of the last N days, oldest first"""
        today = self._today()
        start = self.date_service.window_start(today, days)
        return self.progress_repo.get_range(self.db, habit_id, start, today)

    def total_completions(self, habit_id: int) -> int:
        return self.progress_repo.count_completions(self.db, habit_id)

    def progress_percentage(self, habit_id: int, day: Optional[date] = None) -> float:
        """Logged value relative to the target for a day, capped at 1"""
        habit = self.habit_repo.get_by_id(self.db, habit_id)
        if not habit:
            raise HabitNotFoundException(habit_id)

        entry = self.progress_repo.get_for_day(self.db, habit_id, day or self._today())
        if not entry or not habit.target_value:
            return 0.0
        return min(entry.value / habit.target_value, 1.0)

    def today_completion_rate(self) -> float:
        """Completed active habits today / active habits"""
        return self._completion_fraction(self._today())

    def _completion_fraction(self, day: date) -> float:
        habit_count = len(self.habit_repo.get_active(self.db))
        if habit_count == 0:
            return 0.0
        return self.progress_repo.count_complete_on(self.db, day) / habit_count

    def daily_goal_progress(self) -> dict:
        """Today's completed habits against the user's daily goal"""
        user = self.user_repo.get(self.db)
        completed = self.progress_repo.count_complete_on(self.db, self._today())
        goal = user.daily_goal or 0
        progress = min(completed / goal, 1.0) if goal > 0 else 0.0
        return {
            "completed": completed,
            "goal": goal,
            "progress": progress,
            "is_met": goal > 0 and completed >= goal
        }

    def weekly_progress(self) -> List[float]:
        """Completion fraction of active habits for the last 7 days, oldest first"""
        today = self._today()
        start = today - timedelta(days=WEEKLY_PROGRESS_DAYS - 1)
        return [
            self._completion_fraction(day)
            for day in self.date_service.iter_days(start, today)
        ]

    def monthly_trend(self) -> float:
        """
        Change in completions of the last 30 days vs. the 30 days before.

        Clamped to [-1, 1]. With nothing in the previous window the trend is
        1.0 if anything was completed recently, else 0.
        """
        today = self._today()
        recent_start = today - timedelta(days=TREND_WINDOW_DAYS - 1)
        previous_end = recent_start - timedelta(days=1)
        previous_start = previous_end - timedelta(days=TREND_WINDOW_DAYS - 1)

        recent = self.progress_repo.count_completions_between(self.db, recent_start, today)
        previous = self.progress_repo.count_completions_between(
            self.db, previous_start, previous_end
        )

        if previous == 0:
            return 1.0 if recent > 0 else 0.0

        trend = (recent - previous) / previous
        return max(-1.0, min(1.0, trend))

    def habit_stats(self, habit_id: int, window_days: Optional[int] = None) -> dict:
        """
        Summary of one habit for dashboards.

        The completion window falls back to the configured default.
        """
        habit = self.habit_repo.get_by_id(self.db, habit_id)
        if not habit:
            raise HabitNotFoundException(habit_id)

        if window_days is None:
            window_days = (
                self.settings_repo.get(self.db).completion_window_days
                or DEFAULT_COMPLETION_WINDOW_DAYS
            )

        today = self._today()
        entry = self.progress_repo.get_for_day(self.db, habit_id, today)
        return {
            "habit_id": habit.id,
            "name": habit.name,
            "current_streak": self.streak_service.current_streak(habit_id, today),
            "longest_streak": self.streak_service.longest_streak(habit_id, today),
            "completion_rate": self.completion_rate(habit_id, window_days),
            "window_days": window_days,
            "total_completions": self.total_completions(habit_id),
            "completed_today": bool(entry and entry.is_complete),
            "today_percentage": self.progress_percentage(habit_id, today),
        }
