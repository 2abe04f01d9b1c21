"""
Date calculation service.
Handles effective dates, day start time logic and lookback windows.
"""
from datetime import datetime, timedelta, date
from typing import Callable, Iterator, Optional

from sqlalchemy.orm import Session

from habit_ledger.models import Settings
from habit_ledger.exceptions import InvalidTimeFormatException
from habit_ledger.repositories.settings_repository import SettingsRepository


class DateService:
    """Service for date-related operations"""

    @staticmethod
    def get_effective_date(settings: Settings) -> date:
        """
        Get the effective current date based on day_start_time setting.

        If day_start_enabled is True and current time is before day_start_time,
        returns yesterday's date. Otherwise returns today's date.

        Example: If day_start_time = "06:00" and current time is 03:00,
        the effective date is still yesterday, so a late-night log counts
        toward the day the user has not finished yet.

        Args:
            settings: Settings object containing day_start configuration

        Returns:
            Effective date (today or yesterday)
        """
        now = datetime.now()
        today = now.date()

        if not settings.day_start_enabled:
            return today

        try:
            day_start_hour, day_start_minute = DateService.parse_time(
                settings.day_start_time or "06:00"
            )
        except InvalidTimeFormatException:
            return today

        current_minutes = now.hour * 60 + now.minute
        start_minutes = day_start_hour * 60 + day_start_minute

        if current_minutes < start_minutes:
            return today - timedelta(days=1)

        return today

    @staticmethod
    def parse_time(time_str: str) -> tuple[int, int]:
        """
        Parse time string into hour and minute.

        Accepts "HH:MM" and the compact "HHMM" form.

        Raises:
            InvalidTimeFormatException: If time string is invalid
        """
        try:
            t_str = time_str.replace(":", "").zfill(4)
            hour = int(t_str[:2])
            minute = int(t_str[2:])
        except (ValueError, AttributeError):
            raise InvalidTimeFormatException(str(time_str))

        if len(t_str) != 4 or not (0 <= hour < 24 and 0 <= minute < 60):
            raise InvalidTimeFormatException(time_str)
        return hour, minute

    @staticmethod
    def window_start(today: date, window_days: int) -> date:
        """First day of a lookback window [today - window_days, today]"""
        return today - timedelta(days=window_days)

    @staticmethod
    def iter_days(start: date, end: date) -> Iterator[date]:
        """Yield every day from start to end inclusive"""
        current = start
        while current <= end:
            yield current
            current += timedelta(days=1)

    @staticmethod
    def resolve_today(
        db: Session,
        today_provider: Optional[Callable[[], date]] = None
    ) -> date:
        """
        Today's effective date.

        An injected provider wins; otherwise the stored day-start settings
        decide.
        """
        if today_provider:
            return today_provider()
        return DateService.get_effective_date(SettingsRepository.get(db))
