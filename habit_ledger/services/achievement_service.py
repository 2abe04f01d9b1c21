"""
Achievement service.
Evaluates the completion and streak ladders of a habit and unlocks rungs.

Each habit owns one locked Achievement row per rung. Evaluation moves the
progress counter and unlocks every rung whose requirement has been reached,
so a milestone skipped over (batch import, backfill) is still unlocked on
the next evaluation. Unlocked rungs never unlock or pay out again.
"""
import logging
from datetime import date, datetime
from typing import Callable, List, Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from habit_ledger.models import Achievement, Habit
from habit_ledger.events import AchievementUnlocked, EventDispatcher, LevelUp
from habit_ledger.exceptions import DatabaseException, HabitNotFoundException
from habit_ledger.repositories.habit_repository import (
    HabitRepository, ProgressEntryRepository
)
from habit_ledger.repositories.points_repository import AchievementRepository
from habit_ledger.services.points_service import PointsService
from habit_ledger.services.streak_service import StreakService
from habit_ledger.constants import (
    ACHIEVEMENT_KIND_COMPLETIONS,
    ACHIEVEMENT_KIND_STREAK,
    COMPLETION_MILESTONES,
    STREAK_MILESTONES,
    COMPLETION_POINTS_MULTIPLIER,
    STREAK_POINTS_MULTIPLIER
)

logger = logging.getLogger("habit_ledger.achievements")

LADDERS = (
    (ACHIEVEMENT_KIND_COMPLETIONS, COMPLETION_MILESTONES, COMPLETION_POINTS_MULTIPLIER),
    (ACHIEVEMENT_KIND_STREAK, STREAK_MILESTONES, STREAK_POINTS_MULTIPLIER),
)


def _describe_rung(habit: Habit, kind: str, milestone: int) -> Tuple[str, str, str]:
    """Name, description and icon of a ladder rung"""
    if kind == ACHIEVEMENT_KIND_COMPLETIONS:
        return (
            f"{milestone} Day Champion",
            f"Completed {habit.name} for {milestone} days",
            "trophy.fill"
        )
    return (
        f"{milestone} Day Streak!",
        f"Maintained a {milestone} day streak of {habit.name}",
        "flame.fill"
    )


class AchievementService:
    """Service for achievement evaluation"""

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
        self.achievement_repo = AchievementRepository()
        self.streak_service = StreakService(db, today_provider)
        self.points_service = PointsService(db, self.events)

    def ensure_catalog(self, habit: Habit) -> List[Achievement]:
        """Create any missing (locked) ladder rungs for a habit. Does not commit."""
        created = []
        for kind, milestones, multiplier in LADDERS:
            for milestone in milestones:
                if self.achievement_repo.get_rung(self.db, habit.id, kind, milestone):
                    continue
                name, description, icon = _describe_rung(habit, kind, milestone)
                created.append(self.achievement_repo.create(self.db, Achievement(
                    habit_id=habit.id,
                    kind=kind,
                    requirement=milestone,
                    progress=0,
                    name=name,
                    description=description,
                    icon=icon,
                    points=milestone * multiplier,
                    is_unlocked=False
                )))
        return created

    def evaluate(
        self,
        habit: Habit,
        today: date
    ) -> Tuple[List[Achievement], Optional[LevelUp]]:
        """
        Evaluate both ladders against current totals. Does not commit or emit.

        Returns:
            (newly unlocked achievements, merged level-up or None)
        """
        self.ensure_catalog(habit)
        metrics = {
            ACHIEVEMENT_KIND_COMPLETIONS: self.progress_repo.count_completions(self.db, habit.id),
            ACHIEVEMENT_KIND_STREAK: self.streak_service.current_streak(habit.id, today),
        }

        unlocked = []
        level_ups = []
        for achievement in self.achievement_repo.get_locked(self.db, habit.id):
            metric = metrics.get(achievement.kind, 0)
            achievement.progress = min(metric, achievement.requirement)
            if metric < achievement.requirement:
                continue

            achievement.is_unlocked = True
            achievement.unlocked_at = datetime.now()
            unlocked.append(achievement)
            level_ups.append(self.points_service.add_points(achievement.points))
            logger.info(
                f"Achievement unlocked for habit {habit.id}: "
                f"{achievement.name} (+{achievement.points} points)"
            )

        return unlocked, self.points_service.merge_level_ups(level_ups)

    def check_achievements(self, habit_id: int) -> List[Achievement]:
        """
        Evaluate a habit's ladders, commit, and emit events.

        Returns:
            Newly unlocked achievements
        """
        habit = self.habit_repo.get_by_id(self.db, habit_id)
        if not habit:
            raise HabitNotFoundException(habit_id)

        try:
            unlocked, level_up = self.evaluate(habit, self.streak_service.today())
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Achievement check failed for habit {habit_id}: {e}")
            raise DatabaseException("check achievements", str(e)) from e

        self.publish(unlocked, level_up)
        return unlocked

    def publish(self, unlocked: List[Achievement], level_up: Optional[LevelUp]) -> None:
        """Emit unlock events followed by the level-up, if any"""
        for achievement in unlocked:
            self.events.emit(AchievementUnlocked(
                achievement_id=achievement.id,
                habit_id=achievement.habit_id,
                kind=achievement.kind,
                requirement=achievement.requirement,
                name=achievement.name,
                points=achievement.points,
                unlocked_at=achievement.unlocked_at
            ))
        if level_up:
            self.events.emit(level_up)

    def get_achievements(
        self,
        habit_id: Optional[int] = None,
        unlocked_only: bool = False
    ) -> List[Achievement]:
        """Get achievements of one habit or of all habits"""
        if habit_id is None:
            return self.achievement_repo.get_all(self.db, unlocked_only)
        achievements = self.achievement_repo.get_for_habit(self.db, habit_id)
        if unlocked_only:
            achievements = [a for a in achievements if a.is_unlocked]
        return achievements
