"""
Goal management service.
Handles goals and the progress updates recorded against them.
"""
import logging
from datetime import date, datetime
from typing import Callable, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from habit_ledger.models import Goal, GoalUpdate
from habit_ledger.schemas import GoalCreate
from habit_ledger.exceptions import (
    DatabaseException, GoalNotFoundException, HabitNotFoundException, ValidationException
)
from habit_ledger.repositories.goal_repository import GoalRepository, GoalUpdateRepository
from habit_ledger.repositories.habit_repository import HabitRepository
from habit_ledger.services.streak_service import StreakService
from habit_ledger.constants import GOAL_TYPE_STREAK

logger = logging.getLogger("habit_ledger.goals")


class GoalService:
    """Service for managing goals"""

    def __init__(self, db: Session, today_provider: Optional[Callable[[], date]] = None):
        self.db = db
        self.goal_repo = GoalRepository()
        self.update_repo = GoalUpdateRepository()
        self.habit_repo = HabitRepository()
        self.streak_service = StreakService(db, today_provider)

    def get_goals(self, include_inactive: bool = False) -> List[Goal]:
        """Get goals, oldest first"""
        return self.goal_repo.get_all(self.db, include_inactive)

    def get_goal(self, goal_id: int) -> Goal:
        goal = self.goal_repo.get_by_id(self.db, goal_id)
        if not goal:
            raise GoalNotFoundException(goal_id)
        return goal

    def create_goal(self, goal_data: GoalCreate) -> Goal:
        """Create a new goal"""
        if goal_data.goal_type != GOAL_TYPE_STREAK and goal_data.target_value == 0:
            raise ValidationException("target_value", "must not be 0")
        if goal_data.goal_type == GOAL_TYPE_STREAK and goal_data.target_value <= 0:
            raise ValidationException("target_value", "must be greater than 0 for streak goals")

        if goal_data.habit_id is not None:
            if goal_data.goal_type != GOAL_TYPE_STREAK:
                raise ValidationException("habit_id", "only streak goals can follow a habit")
            if not self.habit_repo.get_active_by_id(self.db, goal_data.habit_id):
                raise HabitNotFoundException(goal_data.habit_id)

        data = goal_data.model_dump()
        if data["current_value"] is None:
            data["current_value"] = data["start_value"]

        try:
            goal = self.goal_repo.create(self.db, Goal(**data))
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("create goal", str(e)) from e

        logger.info(f"Goal created: {goal.id} '{goal.name}' ({goal.goal_type})")
        return goal

    def record_update(self, goal_id: int, value: float, note: Optional[str] = None) -> Goal:
        """Set a goal's current value and keep the update in its history"""
        goal = self.get_goal(goal_id)
        now = datetime.now()
        try:
            self.update_repo.create(self.db, GoalUpdate(
                goal_id=goal.id,
                date=now,
                value=value,
                note=note
            ))
            goal.current_value = value
            goal.last_update_at = now
            goal = self.goal_repo.update(self.db, goal)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("record goal update", str(e)) from e

        logger.info(f"Goal {goal_id} updated to {value} ({goal.progress_percentage}%)")
        return goal

    def get_updates(self, goal_id: int) -> List[GoalUpdate]:
        self.get_goal(goal_id)
        return self.update_repo.get_for_goal(self.db, goal_id)

    def sync_streak_goal(self, goal_id: int) -> Goal:
        """Copy the linked habit's current streak into a streak goal"""
        goal = self.get_goal(goal_id)
        if goal.goal_type != GOAL_TYPE_STREAK or goal.habit_id is None:
            raise ValidationException("goal_id", "goal does not follow a habit streak")

        streak = self.streak_service.current_streak(goal.habit_id)
        if goal.current_value == streak:
            return goal
        return self.record_update(goal_id, float(streak), note="streak sync")
