from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Float, Date, ForeignKey, UniqueConstraint
)
from datetime import datetime, date, timedelta
from typing import Optional

from habit_ledger.database import Base
from habit_ledger.constants import (
    GOAL_TYPE_QUANTITATIVE, GOAL_TYPE_MILESTONE, GOAL_TYPE_STREAK,
    UPDATE_FREQUENCY_DAYS, ON_TRACK_PACE_RATIO,
    DEFAULT_USER_NAME, DEFAULT_DAILY_GOAL, DEFAULT_COMPLETION_WINDOW_DAYS
)


class Habit(Base):
    __tablename__ = "habits"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    target_value = Column(Float, nullable=False, default=1.0)  # Daily target
    unit = Column(String, nullable=True)  # "minutes", "pages", ...
    category = Column(String, nullable=True)
    icon = Column(String, nullable=True)
    is_active = Column(Boolean, default=True)  # Soft delete
    created_at = Column(DateTime, default=datetime.now)


class ProgressEntry(Base):
    __tablename__ = "progress_entries"
    __table_args__ = (UniqueConstraint("habit_id", "day", name="uq_progress_habit_day"),)

    id = Column(Integer, primary_key=True, index=True)
    habit_id = Column(Integer, ForeignKey("habits.id"), nullable=False, index=True)
    day = Column(Date, nullable=False, index=True)
    value = Column(Float, default=0.0)
    is_complete = Column(Boolean, default=False)  # value >= habit.target_value
    completed_at = Column(DateTime, nullable=True)  # When the entry turned complete


class Streak(Base):
    __tablename__ = "streaks"

    id = Column(Integer, primary_key=True, index=True)
    habit_id = Column(Integer, ForeignKey("habits.id"), nullable=False, index=True)
    start_day = Column(Date, nullable=False)
    current_length = Column(Integer, default=0)
    longest_length = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)  # One active streak per habit
    ended_at = Column(Date, nullable=True)  # Day the streak was archived


class Achievement(Base):
    __tablename__ = "achievements"
    __table_args__ = (
        UniqueConstraint("habit_id", "kind", "requirement", name="uq_achievement_rung"),
    )

    id = Column(Integer, primary_key=True, index=True)
    habit_id = Column(Integer, ForeignKey("habits.id"), nullable=False, index=True)
    kind = Column(String, nullable=False)  # completions or streak
    requirement = Column(Integer, nullable=False)  # Threshold to unlock
    progress = Column(Integer, default=0)  # Capped at requirement
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    icon = Column(String, nullable=True)
    points = Column(Integer, default=0)
    is_unlocked = Column(Boolean, default=False)
    unlocked_at = Column(DateTime, nullable=True)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, default=DEFAULT_USER_NAME)
    total_points = Column(Integer, default=0)
    current_level = Column(Integer, default=1)  # floor(points / 100) + 1
    daily_goal = Column(Integer, default=DEFAULT_DAILY_GOAL)  # Habits per day
    joined_at = Column(DateTime, default=datetime.now)


class Settings(Base):
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, index=True)

    # Day boundary
    day_start_enabled = Column(Boolean, default=False)
    day_start_time = Column(String, default="06:00")  # HH:MM

    # Statistics
    completion_window_days = Column(Integer, default=DEFAULT_COMPLETION_WINDOW_DAYS)

    # Background jobs
    streak_sweep_enabled = Column(Boolean, default=True)
    last_sweep_date = Column(Date, nullable=True)

    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class Goal(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    goal_type = Column(String, default=GOAL_TYPE_QUANTITATIVE)  # quantitative, milestone, streak
    category = Column(String, nullable=True)
    start_value = Column(Float, default=0.0)
    target_value = Column(Float, nullable=False)
    current_value = Column(Float, default=0.0)
    unit = Column(String, nullable=True)
    deadline = Column(Date, nullable=True)
    update_frequency = Column(String, default="weekly")  # daily, weekly, biweekly, monthly
    habit_id = Column(Integer, ForeignKey("habits.id"), nullable=True)  # Streak goals only
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)
    last_update_at = Column(DateTime, nullable=True)

    @property
    def progress(self) -> float:
        """
        Fraction of the goal reached, in [0, 1].

        Quantitative goals are direction-aware: when start > target
        (weight loss) a decreasing value is progress.
        """
        start = self.start_value or 0.0
        current = self.current_value or 0.0
        target = self.target_value

        if self.goal_type == GOAL_TYPE_QUANTITATIVE:
            if target == start:
                return 0.0
            if start > target:
                ratio = (start - current) / (start - target)
            else:
                ratio = (current - start) / (target - start)
            return max(0.0, min(1.0, ratio))

        if not target or target <= 0:
            return 0.0

        if self.goal_type == GOAL_TYPE_MILESTONE:
            return 1.0 if current >= target else max(0.0, current / target)

        if self.goal_type == GOAL_TYPE_STREAK:
            return max(0.0, min(1.0, current / target))

        return 0.0

    @property
    def progress_percentage(self) -> int:
        return int(self.progress * 100)

    @property
    def remaining_value(self) -> float:
        return abs(self.target_value - (self.current_value or 0.0))

    def days_until_deadline(self, today: date) -> Optional[int]:
        if not self.deadline:
            return None
        return (self.deadline - today).days

    def is_on_track(self, today: date) -> bool:
        """Pace check: progress per remaining day vs. what is still needed"""
        days_left = self.days_until_deadline(today)
        if days_left is None or days_left <= 0:
            return True

        progress = self.progress
        progress_per_day = progress / days_left
        required_per_day = (1.0 - progress) / days_left
        return progress_per_day >= required_per_day * ON_TRACK_PACE_RATIO

    @property
    def next_update_due(self) -> datetime:
        last = self.last_update_at or self.created_at or datetime.now()
        interval = UPDATE_FREQUENCY_DAYS.get(self.update_frequency, 7)
        return last + timedelta(days=interval)

    def is_update_due(self, now: datetime) -> bool:
        return self.next_update_due <= now


class GoalUpdate(Base):
    __tablename__ = "goal_updates"

    id = Column(Integer, primary_key=True, index=True)
    goal_id = Column(Integer, ForeignKey("goals.id"), nullable=False, index=True)
    date = Column(DateTime, default=datetime.now)
    value = Column(Float, nullable=False)
    note = Column(String, nullable=True)
