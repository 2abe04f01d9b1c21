"""
Progress ledger service.
Records daily values for habits and drives the streak, points and
achievement side effects of each log.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from habit_ledger.models import Achievement, Habit, ProgressEntry
from habit_ledger.events import EventDispatcher, LevelUp
from habit_ledger.exceptions import (
    DatabaseException, HabitNotFoundException, ValidationException
)
from habit_ledger.repositories.habit_repository import (
    HabitRepository, ProgressEntryRepository
)
from habit_ledger.services.achievement_service import AchievementService
from habit_ledger.services.points_service import PointsService
from habit_ledger.services.streak_service import StreakService
from habit_ledger.constants import BASE_COMPLETION_POINTS

logger = logging.getLogger("habit_ledger.progress")


@dataclass
class ProgressResult:
    """Outcome of a single log or toggle"""
    entry: ProgressEntry
    newly_complete: bool
    current_streak: int
    longest_streak: int
    points_awarded: int = 0
    unlocked: List[Achievement] = field(default_factory=list)
    level_up: Optional[LevelUp] = None


class ProgressService:
    """Service for logging habit progress"""

    def __init__(
        self,
        db: Session,
        today_provider: Optional[Callable[[], date]] = None,
        events: Optional[EventDispatcher] = None
    ):
        self.db = db
        self.events = events or EventDispatcher()
        self.habit_repo = HabitRepository()
        self.progress_repo = ProgressEntryRepository()
        self.streak_service = StreakService(db, today_provider)
        self.points_service = PointsService(db, self.events)
        self.achievement_service = AchievementService(db, today_provider, self.events)

    def _get_habit(self, habit_id: int) -> Habit:
        habit = self.habit_repo.get_active_by_id(self.db, habit_id)
        if not habit:
            raise HabitNotFoundException(habit_id)
        return habit

    def _resolve_day(self, day: Optional[date], today: date) -> date:
        day = day or today
        if day > today:
            raise ValidationException("day", f"{day} is in the future")
        return day

    def log_progress(
        self,
        habit_id: int,
        day: Optional[date] = None,
        value: Optional[float] = None
    ) -> ProgressResult:
        """
        Upsert the entry for (habit, day) and apply its side effects.

        A newly complete entry earns the base completion points and triggers
        achievement evaluation. Overwriting an already complete entry earns
        nothing.

        Args:
            habit_id: Habit to log against
            day: Calendar day (defaults to today)
            value: Logged value (defaults to the habit's target)

        Returns:
            ProgressResult describing what changed

        Raises:
            HabitNotFoundException: Unknown or deactivated habit
            ValidationException: Future day or negative value
            DatabaseException: Storage failure (transaction rolled back)
        """
        habit = self._get_habit(habit_id)
        today = self.streak_service.today()
        day = self._resolve_day(day, today)
        if value is None:
            value = habit.target_value
        if value < 0:
            raise ValidationException("value", "must not be negative")

        try:
            entry, newly_complete = self._upsert_entry(habit, day, value)
            result = self._apply_side_effects(habit, entry, newly_complete, today)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Logging progress for habit {habit_id} on {day} failed: {e}")
            raise DatabaseException("log progress", str(e)) from e

        logger.info(
            f"Logged {value} for habit {habit_id} on {day} "
            f"(complete={entry.is_complete}, streak={result.current_streak})"
        )
        self.achievement_service.publish(result.unlocked, result.level_up)
        return result

    def toggle_completion(self, habit_id: int, day: Optional[date] = None) -> ProgressResult:
        """
        Flip a day between complete and not complete.

        Un-completing resets the value to 0; points already earned are kept.
        """
        habit = self._get_habit(habit_id)
        today = self.streak_service.today()
        day = self._resolve_day(day, today)

        entry = self.progress_repo.get_for_day(self.db, habit.id, day)
        if not entry or not entry.is_complete:
            return self.log_progress(habit_id, day)

        try:
            entry.value = 0.0
            entry.is_complete = False
            entry.completed_at = None
            self.db.flush()
            self.streak_service.refresh_streak(habit.id, today)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Toggling habit {habit_id} on {day} failed: {e}")
            raise DatabaseException("toggle completion", str(e)) from e

        logger.info(f"Habit {habit_id} marked incomplete on {day}")
        return ProgressResult(
            entry=entry,
            newly_complete=False,
            current_streak=self.streak_service.current_streak(habit.id, today),
            longest_streak=self.streak_service.longest_streak(habit.id, today)
        )

    def _upsert_entry(self, habit: Habit, day: date, value: float):
        entry = self.progress_repo.get_for_day(self.db, habit.id, day)
        was_complete = bool(entry and entry.is_complete)

        if entry is None:
            entry = self.progress_repo.create(self.db, ProgressEntry(
                habit_id=habit.id,
                day=day,
                value=value,
                is_complete=value >= habit.target_value
            ))
        else:
            entry.value = value
            entry.is_complete = value >= habit.target_value

        newly_complete = entry.is_complete and not was_complete
        if newly_complete:
            entry.completed_at = datetime.now()
        elif not entry.is_complete:
            entry.completed_at = None
        self.db.flush()
        return entry, newly_complete

    def _apply_side_effects(
        self,
        habit: Habit,
        entry: ProgressEntry,
        newly_complete: bool,
        today: date
    ) -> ProgressResult:
        self.streak_service.refresh_streak(habit.id, today)

        points_awarded = 0
        unlocked = []
        level_ups = []
        if newly_complete:
            level_ups.append(self.points_service.add_points(BASE_COMPLETION_POINTS))
            points_awarded += BASE_COMPLETION_POINTS

            unlocked, achievement_level_up = self.achievement_service.evaluate(habit, today)
            level_ups.append(achievement_level_up)
            points_awarded += sum(a.points for a in unlocked)

        return ProgressResult(
            entry=entry,
            newly_complete=newly_complete,
            current_streak=self.streak_service.current_streak(habit.id, today),
            longest_streak=self.streak_service.longest_streak(habit.id, today),
            points_awarded=points_awarded,
            unlocked=unlocked,
            level_up=self.points_service.merge_level_ups(level_ups)
        )

    def get_entry(self, habit_id: int, day: Optional[date] = None) -> Optional[ProgressEntry]:
        """Get the entry of a habit for a day (defaults to today)"""
        return self.progress_repo.get_for_day(
            self.db, habit_id, day or self.streak_service.today()
        )

    def is_complete(self, habit_id: int, day: Optional[date] = None) -> bool:
        entry = self.get_entry(habit_id, day)
        return bool(entry and entry.is_complete)
