"""
Habit repository - Data access layer for habits and their daily records.
Handles all database queries related to habits, progress entries and streaks.

Writes are flushed, not committed: the calling service owns the transaction.
"""
from datetime import date
from typing import List, Optional, Set
from sqlalchemy.orm import Session

from habit_ledger.models import Habit, ProgressEntry, Streak


class HabitRepository:
    """Repository for Habit data access"""

    @staticmethod
    def get_by_id(db: Session, habit_id: int) -> Optional[Habit]:
        """Get habit by ID (active or not)"""
        return db.query(Habit).filter(Habit.id == habit_id).first()

    @staticmethod
    def get_active_by_id(db: Session, habit_id: int) -> Optional[Habit]:
        """Get habit by ID only if it has not been deactivated"""
        return db.query(Habit).filter(
            Habit.id == habit_id,
            Habit.is_active == True
        ).first()

    @staticmethod
    def get_active(db: Session) -> List[Habit]:
        """Get all active habits, newest first"""
        return db.query(Habit).filter(
            Habit.is_active == True
        ).order_by(Habit.created_at.desc(), Habit.id.desc()).all()

    @staticmethod
    def create(db: Session, habit: Habit) -> Habit:
        """Add a new habit"""
        db.add(habit)
        db.flush()
        return habit


class ProgressEntryRepository:
    """Repository for ProgressEntry data access"""

    @staticmethod
    def get_for_day(db: Session, habit_id: int, day: date) -> Optional[ProgressEntry]:
        """Get the single entry for (habit, day)"""
        return db.query(ProgressEntry).filter(
            ProgressEntry.habit_id == habit_id,
            ProgressEntry.day == day
        ).first()

    @staticmethod
    def get_range(
        db: Session,
        habit_id: int,
        start_day: date,
        end_day: date
    ) -> List[ProgressEntry]:
        """Get entries for a habit with start_day <= day <= end_day, oldest first"""
        return db.query(ProgressEntry).filter(
            ProgressEntry.habit_id == habit_id,
            ProgressEntry.day >= start_day,
            ProgressEntry.day <= end_day
        ).order_by(ProgressEntry.day).all()

    @staticmethod
    def get_completed_days(db: Session, habit_id: int, up_to: date) -> Set[date]:
        """Get every day up to and including `up_to` with a complete entry"""
        rows = db.query(ProgressEntry.day).filter(
            ProgressEntry.habit_id == habit_id,
            ProgressEntry.is_complete == True,
            ProgressEntry.day <= up_to
        ).all()
        return {row[0] for row in rows}

    @staticmethod
    def count_completions(db: Session, habit_id: int) -> int:
        """Count all complete entries of a habit"""
        return db.query(ProgressEntry).filter(
            ProgressEntry.habit_id == habit_id,
            ProgressEntry.is_complete == True
        ).count()

    @staticmethod
    def count_completions_between(db: Session, start_day: date, end_day: date) -> int:
        """Count complete entries of active habits with start_day <= day <= end_day"""
        return db.query(ProgressEntry).join(
            Habit, Habit.id == ProgressEntry.habit_id
        ).filter(
            Habit.is_active == True,
            ProgressEntry.is_complete == True,
            ProgressEntry.day >= start_day,
            ProgressEntry.day <= end_day
        ).count()

    @staticmethod
    def count_complete_on(db: Session, day: date) -> int:
        """Count active habits complete on a given day"""
        return ProgressEntryRepository.count_completions_between(db, day, day)

    @staticmethod
    def create(db: Session, entry: ProgressEntry) -> ProgressEntry:
        """Add a new progress entry"""
        db.add(entry)
        db.flush()
        return entry


class StreakRepository:
    """Repository for Streak data access"""

    @staticmethod
    def get_active(db: Session, habit_id: int) -> Optional[Streak]:
        """Get the active streak of a habit, if any"""
        return db.query(Streak).filter(
            Streak.habit_id == habit_id,
            Streak.is_active == True
        ).first()

    @staticmethod
    def get_all_for_habit(db: Session, habit_id: int) -> List[Streak]:
        """Get active and archived streaks of a habit, newest first"""
        return db.query(Streak).filter(
            Streak.habit_id == habit_id
        ).order_by(Streak.start_day.desc(), Streak.id.desc()).all()

    @staticmethod
    def get_longest_length(db: Session, habit_id: int) -> int:
        """Get the best streak length ever recorded for a habit"""
        streaks = StreakRepository.get_all_for_habit(db, habit_id)
        return max((s.longest_length or 0 for s in streaks), default=0)

    @staticmethod
    def create(db: Session, streak: Streak) -> Streak:
        """Add a new streak"""
        db.add(streak)
        db.flush()
        return streak
