from fastapi import FastAPI, Depends, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
import os
from pathlib import Path

from habit_ledger.database import get_db, init_db
from habit_ledger.schemas import (
    HabitCreate, HabitResponse, ProgressLog, ToggleRequest, ProgressResultResponse,
    HabitStatsResponse, StreakResponse, AchievementResponse,
    UserResponse, DashboardResponse,
    SettingsUpdate, SettingsResponse,
    GoalCreate, GoalUpdateCreate, GoalUpdateResponse, GoalResponse
)
from habit_ledger.auth import verify_api_key
from habit_ledger.events import EventDispatcher, AchievementUnlocked, LevelUp
from habit_ledger.exceptions import (
    HabitNotFoundException, GoalNotFoundException, ValidationException,
    InvalidTimeFormatException, DatabaseException
)
from habit_ledger.services.habit_service import HabitService
from habit_ledger.services.progress_service import ProgressService
from habit_ledger.services.stats_service import StatsService
from habit_ledger.services.streak_service import StreakService
from habit_ledger.services.achievement_service import AchievementService
from habit_ledger.services.points_service import PointsService
from habit_ledger.services.goal_service import GoalService
from habit_ledger.services.settings_service import SettingsService
from habit_ledger.services.scheduler_service import start_scheduler, stop_scheduler
from habit_ledger.constants import (
    DEFAULT_LOG_DIRECTORY_PROD, DEFAULT_LOG_DIRECTORY_DEV, CORS_ALLOWED_ORIGINS
)

LOG_DIR = os.getenv("HABIT_LEDGER_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("HABIT_LEDGER_LOG_FILE", "app.log")

# Create log directory if it doesn't exist (for development)
try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE
except PermissionError:
    # Fallback to local directory if no permissions for /var/log
    LOG_DIR = DEFAULT_LOG_DIRECTORY_DEV
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger("habit_ledger")

# Celebrations are rendered by clients; the server only records them
events = EventDispatcher()


def _log_celebration(event):
    if isinstance(event, AchievementUnlocked):
        logger.info(f"Celebrate: '{event.name}' unlocked for habit {event.habit_id}")
    elif isinstance(event, LevelUp):
        logger.info(f"Celebrate: level {event.new_level} reached")


events.subscribe(_log_celebration)

app = FastAPI(
    title="Habit Ledger API",
    description="Streaks, completion rates and achievements for daily habits",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    init_db()
    logger.info(f"Habit Ledger API started. Logging to: {log_path}")
    start_scheduler()


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Habit Ledger API")
    stop_scheduler()


@app.exception_handler(HabitNotFoundException)
@app.exception_handler(GoalNotFoundException)
async def not_found_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(ValidationException)
@app.exception_handler(InvalidTimeFormatException)
async def validation_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(DatabaseException)
async def database_handler(request: Request, exc: DatabaseException):
    logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Storage error"}
    )


# Health check (no auth required)
@app.get("/")
async def root():
    return {"message": "Habit Ledger API", "status": "active"}


# Habits
@app.get("/api/habits", response_model=List[HabitResponse], dependencies=[Depends(verify_api_key)])
async def get_habits(db: Session = Depends(get_db)):
    """Get active habits"""
    return HabitService(db).get_habits()

@app.post("/api/habits", response_model=HabitResponse, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
async def create_habit(habit: HabitCreate, db: Session = Depends(get_db)):
    """Create a new habit"""
    return HabitService(db).create_habit(habit)

@app.delete("/api/habits/{habit_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(verify_api_key)])
async def deactivate_habit(habit_id: int, db: Session = Depends(get_db)):
    """Deactivate a habit (history is kept)"""
    HabitService(db).deactivate_habit(habit_id)


# Progress
@app.post("/api/habits/{habit_id}/progress", response_model=ProgressResultResponse, dependencies=[Depends(verify_api_key)])
async def log_progress(habit_id: int, progress: ProgressLog, db: Session = Depends(get_db)):
    """Log a value for a day (defaults: today, the habit's target)"""
    result = ProgressService(db, events=events).log_progress(
        habit_id, day=progress.day, value=progress.value
    )
    return ProgressResultResponse.model_validate(result)

@app.post("/api/habits/{habit_id}/toggle", response_model=ProgressResultResponse, dependencies=[Depends(verify_api_key)])
async def toggle_habit(habit_id: int, request: Optional[ToggleRequest] = None, db: Session = Depends(get_db)):
    """Flip a day between complete and not complete"""
    day = request.day if request else None
    result = ProgressService(db, events=events).toggle_completion(habit_id, day)
    return ProgressResultResponse.model_validate(result)

@app.get("/api/habits/{habit_id}/stats", response_model=HabitStatsResponse, dependencies=[Depends(verify_api_key)])
async def get_habit_stats(habit_id: int, window_days: Optional[int] = None, db: Session = Depends(get_db)):
    """Streaks, completion rate and totals for a habit"""
    return StatsService(db).habit_stats(habit_id, window_days)

@app.get("/api/habits/{habit_id}/streaks", response_model=List[StreakResponse], dependencies=[Depends(verify_api_key)])
async def get_habit_streaks(habit_id: int, db: Session = Depends(get_db)):
    """Active and archived streaks of a habit"""
    HabitService(db).get_habit(habit_id)
    return StreakService(db).get_history(habit_id)


# Achievements and points
@app.get("/api/achievements", response_model=List[AchievementResponse], dependencies=[Depends(verify_api_key)])
async def get_achievements(habit_id: Optional[int] = None, unlocked_only: bool = False, db: Session = Depends(get_db)):
    """Get achievements, optionally for one habit"""
    return AchievementService(db).get_achievements(habit_id, unlocked_only)

@app.get("/api/user", response_model=UserResponse, dependencies=[Depends(verify_api_key)])
async def get_user(db: Session = Depends(get_db)):
    """Get the local profile with points and level"""
    user = PointsService(db).get_user()
    db.commit()
    return user

@app.get("/api/dashboard", response_model=DashboardResponse, dependencies=[Depends(verify_api_key)])
async def get_dashboard(db: Session = Depends(get_db)):
    """Today's overview across all habits"""
    stats = StatsService(db)
    user = PointsService(db).get_user()
    db.commit()
    return {
        "user": user,
        "today_completion_rate": stats.today_completion_rate(),
        "daily_goal_progress": stats.daily_goal_progress(),
        "weekly_progress": stats.weekly_progress(),
        "monthly_trend": stats.monthly_trend(),
    }


# Settings
@app.get("/api/settings", response_model=SettingsResponse, dependencies=[Depends(verify_api_key)])
async def get_settings(db: Session = Depends(get_db)):
    """Get settings"""
    return SettingsService(db).get()

@app.put("/api/settings", response_model=SettingsResponse, dependencies=[Depends(verify_api_key)])
async def update_settings(settings_update: SettingsUpdate, db: Session = Depends(get_db)):
    """Update settings"""
    return SettingsService(db).update(settings_update)


# Goals
@app.get("/api/goals", response_model=List[GoalResponse], dependencies=[Depends(verify_api_key)])
async def get_goals(include_inactive: bool = False, db: Session = Depends(get_db)):
    """Get goals"""
    return GoalService(db).get_goals(include_inactive)

@app.post("/api/goals", response_model=GoalResponse, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
async def create_goal(goal: GoalCreate, db: Session = Depends(get_db)):
    """Create a new goal"""
    return GoalService(db).create_goal(goal)

@app.post("/api/goals/{goal_id}/updates", response_model=GoalResponse, dependencies=[Depends(verify_api_key)])
async def add_goal_update(goal_id: int, update: GoalUpdateCreate, db: Session = Depends(get_db)):
    """Record a new current value for a goal"""
    return GoalService(db).record_update(goal_id, update.value, update.note)

@app.get("/api/goals/{goal_id}/updates", response_model=List[GoalUpdateResponse], dependencies=[Depends(verify_api_key)])
async def get_goal_updates(goal_id: int, db: Session = Depends(get_db)):
    """Get the recorded updates of a goal"""
    return GoalService(db).get_updates(goal_id)

@app.post("/api/goals/{goal_id}/sync", response_model=GoalResponse, dependencies=[Depends(verify_api_key)])
async def sync_goal(goal_id: int, db: Session = Depends(get_db)):
    """Refresh a streak goal from its habit"""
    return GoalService(db).sync_streak_goal(goal_id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("habit_ledger.main:app", host="0.0.0.0", port=8000, reload=False)
