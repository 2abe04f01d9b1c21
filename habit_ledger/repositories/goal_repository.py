"""
Goal repository - Data access layer for goals and their recorded updates.
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from habit_ledger.models import Goal, GoalUpdate


class GoalRepository:
    """Repository for Goal data access"""

    @staticmethod
    def get_all(db: Session, include_inactive: bool = False) -> List[Goal]:
        """Get goals, oldest first"""
        query = db.query(Goal)
        if not include_inactive:
            query = query.filter(Goal.is_active == True)
        return query.order_by(Goal.created_at, Goal.id).all()

    @staticmethod
    def get_by_id(db: Session, goal_id: int) -> Optional[Goal]:
        """Get goal by ID"""
        return db.query(Goal).filter(Goal.id == goal_id).first()

    @staticmethod
    def create(db: Session, goal: Goal) -> Goal:
        """Create new goal"""
        db.add(goal)
        db.commit()
        db.refresh(goal)
        return goal

    @staticmethod
    def update(db: Session, goal: Goal) -> Goal:
        """Update existing goal"""
        db.commit()
        db.refresh(goal)
        return goal


class GoalUpdateRepository:
    """Repository for GoalUpdate data access"""

    @staticmethod
    def get_for_goal(db: Session, goal_id: int) -> List[GoalUpdate]:
        """Get recorded updates of a goal, oldest first"""
        return db.query(GoalUpdate).filter(
            GoalUpdate.goal_id == goal_id
        ).order_by(GoalUpdate.date, GoalUpdate.id).all()

    @staticmethod
    def create(db: Session, update: GoalUpdate) -> GoalUpdate:
        """Add an update; committed together with the goal"""
        db.add(update)
        db.flush()
        return update
