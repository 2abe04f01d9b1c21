"""
Points service.
Owns the user's point total and the level derived from it.
"""
import logging
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from habit_ledger.models import User
from habit_ledger.events import EventDispatcher, LevelUp
from habit_ledger.exceptions import DatabaseException, ValidationException
from habit_ledger.repositories.points_repository import UserRepository
from habit_ledger.constants import POINTS_PER_LEVEL

logger = logging.getLogger("habit_ledger.points")


class PointsService:
    """Service for points and level management"""

    def __init__(self, db: Session, events: Optional[EventDispatcher] = None):
        self.db = db
        self.events = events or EventDispatcher()
        self.user_repo = UserRepository()

    @staticmethod
    def level_for(total_points: int) -> int:
        """Level = floor(points / 100) + 1"""
        return max(0, total_points) // POINTS_PER_LEVEL + 1

    def get_user(self) -> User:
        return self.user_repo.get(self.db)

    def add_points(self, points: int) -> Optional[LevelUp]:
        """
        Add points without committing or emitting.

        Used inside larger units of work (logging progress, unlocking
        achievements); the caller commits and emits.

        Returns:
            LevelUp when the level rose, else None
        """
        if points < 0:
            raise ValidationException("points", "must not be negative")

        user = self.user_repo.get(self.db)
        old_level = user.current_level or 1
        user.total_points = (user.total_points or 0) + points

        new_level = self.level_for(user.total_points)
        if new_level > old_level:
            user.current_level = new_level
            logger.info(f"Level up: {old_level} -> {new_level} ({user.total_points} points)")
            return LevelUp(
                old_level=old_level,
                new_level=new_level,
                total_points=user.total_points
            )
        return None

    def award_points(self, points: int) -> Optional[LevelUp]:
        """
        Award points to the user and commit.

        Args:
            points: Non-negative amount to add

        Returns:
            LevelUp event when the level rose (also emitted), else None
        """
        try:
            level_up = self.add_points(points)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Awarding {points} points failed: {e}")
            raise DatabaseException("award points", str(e)) from e

        if level_up:
            self.events.emit(level_up)
        return level_up

    @staticmethod
    def merge_level_ups(level_ups: List[Optional[LevelUp]]) -> Optional[LevelUp]:
        """Collapse several level-ups of one unit of work into one event"""
        raised = [lu for lu in level_ups if lu]
        if not raised:
            return None
        return LevelUp(
            old_level=raised[0].old_level,
            new_level=raised[-1].new_level,
            total_points=raised[-1].total_points
        )
