"""
Application-wide constants.
Engine tuning values and environment-driven paths live here.
"""
import os

# Storage
DATABASE_URL = os.getenv("HABIT_LEDGER_DATABASE_URL", "sqlite:///./habit_ledger.db")

# Logging
DEFAULT_LOG_DIRECTORY_PROD = "/var/log/habit_ledger"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"

# Points
BASE_COMPLETION_POINTS = 10  # Awarded when a day's entry becomes complete
POINTS_PER_LEVEL = 100

# Achievement ladders: thresholds and points per threshold unit
ACHIEVEMENT_KIND_COMPLETIONS = "completions"
ACHIEVEMENT_KIND_STREAK = "streak"
COMPLETION_MILESTONES = (7, 30, 60, 100, 365)
STREAK_MILESTONES = (7, 14, 30, 60, 100)
COMPLETION_POINTS_MULTIPLIER = 10
STREAK_POINTS_MULTIPLIER = 15

# Statistics
DEFAULT_COMPLETION_WINDOW_DAYS = 30
WEEKLY_PROGRESS_DAYS = 7
TREND_WINDOW_DAYS = 30

# User defaults
DEFAULT_USER_NAME = "Friend"
DEFAULT_DAILY_GOAL = 3

# Goals
GOAL_TYPE_QUANTITATIVE = "quantitative"
GOAL_TYPE_MILESTONE = "milestone"
GOAL_TYPE_STREAK = "streak"
GOAL_TYPES = (GOAL_TYPE_QUANTITATIVE, GOAL_TYPE_MILESTONE, GOAL_TYPE_STREAK)

UPDATE_FREQUENCY_DAYS = {
    "daily": 1,
    "weekly": 7,
    "biweekly": 14,
    "monthly": 30,
}
ON_TRACK_PACE_RATIO = 0.9  # Required share of the needed daily pace

# Scheduler
STREAK_SWEEP_HOUR = 0
STREAK_SWEEP_MINUTE = 5

# CORS
CORS_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]
