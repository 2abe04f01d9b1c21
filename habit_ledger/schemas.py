from pydantic import BaseModel, Field, field_validator
from datetime import datetime, date
from typing import List, Optional

from habit_ledger.constants import GOAL_TYPES, UPDATE_FREQUENCY_DAYS


# Habit schemas
class HabitBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    target_value: float = Field(default=1.0, gt=0)  # Daily target
    unit: Optional[str] = Field(None, max_length=50)
    category: Optional[str] = None
    icon: Optional[str] = None

class HabitCreate(HabitBase):
    pass

class HabitResponse(HabitBase):
    id: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


# Progress schemas
class ProgressLog(BaseModel):
    day: Optional[date] = None  # Defaults to today
    value: Optional[float] = Field(None, ge=0)  # Defaults to the habit's target

class ToggleRequest(BaseModel):
    day: Optional[date] = None

class ProgressEntryResponse(BaseModel):
    id: int
    habit_id: int
    day: date
    value: float
    is_complete: bool
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Achievement schemas
class AchievementResponse(BaseModel):
    id: int
    habit_id: int
    kind: str
    requirement: int
    progress: int
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    points: int
    is_unlocked: bool
    unlocked_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class LevelUpResponse(BaseModel):
    old_level: int
    new_level: int
    total_points: int

    class Config:
        from_attributes = True

class ProgressResultResponse(BaseModel):
    entry: ProgressEntryResponse
    newly_complete: bool
    current_streak: int
    longest_streak: int
    points_awarded: int
    unlocked: List[AchievementResponse] = []
    level_up: Optional[LevelUpResponse] = None

    class Config:
        from_attributes = True


# Streak schemas
class StreakResponse(BaseModel):
    id: int
    habit_id: int
    start_day: date
    current_length: int
    longest_length: int
    is_active: bool
    ended_at: Optional[date] = None

    class Config:
        from_attributes = True

class HabitStatsResponse(BaseModel):
    habit_id: int
    name: str
    current_streak: int
    longest_streak: int
    completion_rate: float
    window_days: int
    total_completions: int
    completed_today: bool
    today_percentage: float


# User schemas
class UserResponse(BaseModel):
    id: int
    name: str
    total_points: int
    current_level: int
    daily_goal: int
    joined_at: datetime

    class Config:
        from_attributes = True

class DashboardResponse(BaseModel):
    user: UserResponse
    today_completion_rate: float
    daily_goal_progress: dict
    weekly_progress: List[float]
    monthly_trend: float


# Settings schemas
class SettingsUpdate(BaseModel):
    day_start_enabled: Optional[bool] = None
    day_start_time: Optional[str] = None  # HH:MM
    completion_window_days: Optional[int] = Field(None, ge=1, le=365)
    streak_sweep_enabled: Optional[bool] = None

class SettingsResponse(BaseModel):
    id: int
    day_start_enabled: bool
    day_start_time: str
    completion_window_days: int
    streak_sweep_enabled: bool
    last_sweep_date: Optional[date] = None
    updated_at: datetime

    class Config:
        from_attributes = True


# Goal schemas
class GoalCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    goal_type: str = Field(default="quantitative")  # quantitative, milestone, streak
    category: Optional[str] = None
    start_value: float = 0.0
    target_value: float
    current_value: Optional[float] = None  # Defaults to start_value
    unit: Optional[str] = None
    deadline: Optional[date] = None
    update_frequency: str = Field(default="weekly")
    habit_id: Optional[int] = None  # Streak goals only

    @field_validator("goal_type")
    @classmethod
    def check_goal_type(cls, v: str) -> str:
        if v not in GOAL_TYPES:
            raise ValueError(f"goal_type must be one of {', '.join(GOAL_TYPES)}")
        return v

    @field_validator("update_frequency")
    @classmethod
    def check_update_frequency(cls, v: str) -> str:
        if v not in UPDATE_FREQUENCY_DAYS:
            raise ValueError(
                f"update_frequency must be one of {', '.join(UPDATE_FREQUENCY_DAYS)}"
            )
        return v

class GoalUpdateCreate(BaseModel):
    value: float
    note: Optional[str] = Field(None, max_length=500)

class GoalUpdateResponse(BaseModel):
    id: int
    goal_id: int
    date: datetime
    value: float
    note: Optional[str] = None

    class Config:
        from_attributes = True

class GoalResponse(BaseModel):
    id: int
    name: str
    goal_type: str
    category: Optional[str] = None
    start_value: float
    target_value: float
    current_value: float
    unit: Optional[str] = None
    deadline: Optional[date] = None
    update_frequency: str
    habit_id: Optional[int] = None
    is_active: bool
    created_at: datetime

    # Computed by the Goal model
    progress: float
    progress_percentage: int
    remaining_value: float
    next_update_due: datetime

    class Config:
        from_attributes = True
