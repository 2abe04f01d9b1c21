"""
Points repository - Data access layer for point-related models.
Handles all database queries related to achievements and the user profile.
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from habit_ledger.models import Achievement, User


class AchievementRepository:
    """Repository for Achievement data access"""

    @staticmethod
    def get_for_habit(db: Session, habit_id: int) -> List[Achievement]:
        """Get the whole catalog of a habit"""
        return db.query(Achievement).filter(
            Achievement.habit_id == habit_id
        ).order_by(Achievement.kind, Achievement.requirement).all()

    @staticmethod
    def get_locked(db: Session, habit_id: int) -> List[Achievement]:
        """Get achievements of a habit that are still locked"""
        return db.query(Achievement).filter(
            Achievement.habit_id == habit_id,
            Achievement.is_unlocked == False
        ).order_by(Achievement.kind, Achievement.requirement).all()

    @staticmethod
    def get_rung(
        db: Session,
        habit_id: int,
        kind: str,
        requirement: int
    ) -> Optional[Achievement]:
        """Get a single ladder rung"""
        return db.query(Achievement).filter(
            Achievement.habit_id == habit_id,
            Achievement.kind == kind,
            Achievement.requirement == requirement
        ).first()

    @staticmethod
    def get_all(db: Session, unlocked_only: bool = False) -> List[Achievement]:
        """Get achievements across all habits"""
        query = db.query(Achievement)
        if unlocked_only:
            query = query.filter(Achievement.is_unlocked == True)
        return query.order_by(Achievement.habit_id, Achievement.kind, Achievement.requirement).all()

    @staticmethod
    def create(db: Session, achievement: Achievement) -> Achievement:
        """Add a new achievement"""
        db.add(achievement)
        db.flush()
        return achievement


class UserRepository:
    """Repository for the single local User profile"""

    @staticmethod
    def get(db: Session) -> User:
        """
        Get the user profile (creates with defaults if not exists).

        Returns:
            User object
        """
        user = db.query(User).first()
        if not user:
            user = User()
            db.add(user)
            db.flush()
        return user
