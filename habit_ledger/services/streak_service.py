"""
Streak service.
Derives streaks from the set of completed days and keeps the Streak
records of a habit in step with it.
"""
import logging
from datetime import date, timedelta
from typing import Callable, List, Optional, Set, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from habit_ledger.models import Streak
from habit_ledger.exceptions import DatabaseException
from habit_ledger.repositories.habit_repository import (
    HabitRepository, ProgressEntryRepository, StreakRepository
)
from habit_ledger.services.date_service import DateService

logger = logging.getLogger("habit_ledger.streaks")


class StreakService:
    """Service for streak calculation and bookkeeping"""

    def __init__(self, db: Session, today_provider: Optional[Callable[[], date]] = None):
        self.db = db
        self.today_provider = today_provider
        self.habit_repo = HabitRepository()
        self.progress_repo = ProgressEntryRepository()
        self.streak_repo = StreakRepository()
        self.date_service = DateService()

    def today(self) -> date:
        return self.date_service.resolve_today(self.db, self.today_provider)

    @staticmethod
    def compute_chain(completed_days: Set[date], today: date) -> Tuple[Optional[date], int]:
        """
        Walk backward over consecutive completed days.

        The walk starts at today when today is complete, otherwise at
        yesterday, so an unlogged today does not break a running streak.

        Args:
            completed_days: Days with a complete entry
            today: Effective current date

        Returns:
            (start_day, length), or (None, 0) when there is no running streak
        """
        yesterday = today - timedelta(days=1)
        if today in completed_days:
            anchor = today
        elif yesterday in completed_days:
            anchor = yesterday
        else:
            return None, 0

        length = 0
        day = anchor
        while day in completed_days:
            length += 1
            day -= timedelta(days=1)

        return day + timedelta(days=1), length

    @staticmethod
    def longest_run(completed_days: Set[date]) -> int:
        """Longest run of consecutive days anywhere in the history"""
        longest = 0
        for day in completed_days:
            if day - timedelta(days=1) in completed_days:
                continue
            length = 1
            while day + timedelta(days=length) in completed_days:
                length += 1
            longest = max(longest, length)
        return longest

    def current_streak(self, habit_id: int, today: Optional[date] = None) -> int:
        """Current streak length, recomputed from the entries"""
        today = today or self.today()
        completed = self.progress_repo.get_completed_days(self.db, habit_id, today)
        _, length = self.compute_chain(completed, today)
        return length

    def longest_streak(self, habit_id: int, today: Optional[date] = None) -> int:
        """
        Best streak ever observed for a habit.

        Runs logged after the fact never get a Streak record, so the
        completed days are scanned as well.
        """
        today = today or self.today()
        completed = self.progress_repo.get_completed_days(self.db, habit_id, today)
        recorded = self.streak_repo.get_longest_length(self.db, habit_id)
        return max(recorded, self.longest_run(completed))

    def get_history(self, habit_id: int) -> List[Streak]:
        """Active and archived streaks of a habit, newest first"""
        return self.streak_repo.get_all_for_habit(self.db, habit_id)

    def refresh_streak(self, habit_id: int, today: date) -> Optional[Streak]:
        """
        Bring the habit's Streak records in line with its entries.

        Does not commit; the caller owns the transaction.

        - No running chain: the active streak (if any) is archived.
        - Active streak starting inside the chain: same run, length updated.
        - Active streak starting outside the chain: archived, a new one begins.

        Returns:
            The active streak after the update, or None
        """
        completed = self.progress_repo.get_completed_days(self.db, habit_id, today)
        start_day, length = self.compute_chain(completed, today)
        active = self.streak_repo.get_active(self.db, habit_id)

        if length == 0:
            if active:
                self._archive(active, today)
            return None

        end_day = start_day + timedelta(days=length - 1)
        if active and start_day <= active.start_day <= end_day:
            active.start_day = start_day
            active.current_length = length
            active.longest_length = max(active.longest_length or 0, length)
            return active

        if active:
            self._archive(active, today)

        streak = Streak(
            habit_id=habit_id,
            start_day=start_day,
            current_length=length,
            longest_length=length,
            is_active=True
        )
        return self.streak_repo.create(self.db, streak)

    def _archive(self, streak: Streak, today: date) -> None:
        streak.is_active = False
        streak.ended_at = today
        self.db.flush()
        logger.info(
            f"Streak archived for habit {streak.habit_id}: "
            f"{streak.current_length} days from {streak.start_day}"
        )

    def sweep(self) -> int:
        """
        Refresh the streak of every active habit as of today and commit.

        Archives runs that broke because nothing was logged.

        Returns:
            Number of streaks archived
        """
        today = self.today()
        archived = 0
        try:
            for habit in self.habit_repo.get_active(self.db):
                before = self.streak_repo.get_active(self.db, habit.id)
                after = self.refresh_streak(habit.id, today)
                if before is not None and before is not after:
                    archived += 1
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Streak sweep failed: {e}")
            raise DatabaseException("streak sweep", str(e)) from e
        return archived
