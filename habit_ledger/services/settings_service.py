"""
Settings service.
Validated reads and partial updates of the Settings row.
"""
from datetime import date
from sqlalchemy.orm import Session

from habit_ledger.models import Settings
from habit_ledger.schemas import SettingsUpdate
from habit_ledger.repositories.settings_repository import SettingsRepository
from habit_ledger.services.date_service import DateService


class SettingsService:
    """Service for application settings"""

    def __init__(self, db: Session):
        self.db = db
        self.settings_repo = SettingsRepository()

    def get(self) -> Settings:
        settings = self.settings_repo.get(self.db)
        self.db.commit()
        return settings

    def update(self, settings_update: SettingsUpdate) -> Settings:
        """
        Apply a partial update.

        Raises:
            InvalidTimeFormatException: If day_start_time is not HH:MM
        """
        changes = settings_update.model_dump(exclude_unset=True)
        if changes.get("day_start_time") is not None:
            hour, minute = DateService.parse_time(changes["day_start_time"])
            changes["day_start_time"] = f"{hour:02d}:{minute:02d}"

        settings = self.settings_repo.get(self.db)
        return self.settings_repo.apply(self.db, settings, changes)

    def get_effective_date(self) -> date:
        return DateService.get_effective_date(self.settings_repo.get(self.db))
