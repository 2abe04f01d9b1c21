"""
Habit management service.
The minimal create / list / deactivate operations the ledger depends on.
"""
import logging
from datetime import date
from typing import Callable, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from habit_ledger.models import Habit
from habit_ledger.schemas import HabitCreate
from habit_ledger.exceptions import DatabaseException, HabitNotFoundException
from habit_ledger.repositories.habit_repository import HabitRepository
from habit_ledger.services.achievement_service import AchievementService

logger = logging.getLogger("habit_ledger.habits")


class HabitService:
    """Service for managing habits"""

    def __init__(self, db: Session, today_provider: Optional[Callable[[], date]] = None):
        self.db = db
        self.habit_repo = HabitRepository()
        self.achievement_service = AchievementService(db, today_provider)

    def get_habits(self) -> List[Habit]:
        """Get active habits, newest first"""
        return self.habit_repo.get_active(self.db)

    def get_habit(self, habit_id: int) -> Habit:
        habit = self.habit_repo.get_active_by_id(self.db, habit_id)
        if not habit:
            raise HabitNotFoundException(habit_id)
        return habit

    def create_habit(self, habit_data: HabitCreate) -> Habit:
        """Create a habit together with its locked achievement catalog"""
        try:
            habit = self.habit_repo.create(self.db, Habit(**habit_data.model_dump()))
            self.achievement_service.ensure_catalog(habit)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Creating habit '{habit_data.name}' failed: {e}")
            raise DatabaseException("create habit", str(e)) from e

        self.db.refresh(habit)
        logger.info(f"Habit created: {habit.id} '{habit.name}' (target {habit.target_value})")
        return habit

    def deactivate_habit(self, habit_id: int) -> Habit:
        """Soft-delete a habit; its history stays in place"""
        habit = self.get_habit(habit_id)
        try:
            habit.is_active = False
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("deactivate habit", str(e)) from e

        logger.info(f"Habit deactivated: {habit_id}")
        return habit
