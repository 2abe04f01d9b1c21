"""
Background scheduler for ledger upkeep.
Handles:
- Daily streak sweep: archives streaks that broke because nothing was logged
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from habit_ledger.database import SessionLocal
from habit_ledger.exceptions import HabitLedgerException
from habit_ledger.repositories.settings_repository import SettingsRepository
from habit_ledger.services.date_service import DateService
from habit_ledger.services.streak_service import StreakService
from habit_ledger.constants import STREAK_SWEEP_HOUR, STREAK_SWEEP_MINUTE

logger = logging.getLogger("habit_ledger.scheduler")

scheduler = AsyncIOScheduler()


def sweep_streaks(session_factory=SessionLocal) -> int:
    """
    Run the streak sweep once for the effective date.

    Skipped when disabled or when it already ran for that date.

    Returns:
        Number of streaks archived
    """
    db = session_factory()
    try:
        settings = SettingsRepository.get(db)
        if not settings.streak_sweep_enabled:
            logger.info("[STREAK_SWEEP] Disabled, skipping")
            return 0

        today = DateService.get_effective_date(settings)
        if settings.last_sweep_date == today:
            logger.info(f"[STREAK_SWEEP] Already done for {today}, skipping")
            return 0

        archived = StreakService(db, lambda: today).sweep()
        settings.last_sweep_date = today
        db.commit()
        logger.info(f"[STREAK_SWEEP] {today}: {archived} streak(s) archived")
        return archived
    finally:
        db.close()


async def run_streak_sweep():
    """Job: daily streak sweep"""
    try:
        sweep_streaks()
    except HabitLedgerException as e:
        logger.error(f"Scheduler Error (Streak sweep): {e}")


def start_scheduler():
    """Start the scheduler"""
    if not scheduler.running:
        scheduler.add_job(
            run_streak_sweep,
            CronTrigger(hour=STREAK_SWEEP_HOUR, minute=STREAK_SWEEP_MINUTE),
            id="streak_sweep",
            replace_existing=True
        )

        scheduler.start()
        logger.info(">>> APScheduler STARTED <<<")
        logger.info(f"Scheduled jobs: {[job.id for job in scheduler.get_jobs()]}")


def stop_scheduler():
    """Stop the scheduler"""
    if scheduler.running:
        scheduler.shutdown()
