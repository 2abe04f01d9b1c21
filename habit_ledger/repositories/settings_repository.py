"""
Settings repository - Data access layer for the Settings row.
"""
from sqlalchemy.orm import Session
from habit_ledger.models import Settings


class SettingsRepository:
    """Repository for Settings data access"""

    @staticmethod
    def get(db: Session) -> Settings:
        """
        Get settings, adding a default row to the session if none exists.

        The new row is flushed only; it persists with the caller's next commit.
        """
        settings = db.query(Settings).first()
        if not settings:
            settings = Settings()
            db.add(settings)
            db.flush()
        return settings

    @staticmethod
    def apply(db: Session, settings: Settings, changes: dict) -> Settings:
        """
        Write a partial set of field changes and commit.

        Args:
            db: Database session
            settings: Settings row to change
            changes: Field name -> new value (already validated)

        Returns:
            Updated settings
        """
        for key, value in changes.items():
            setattr(settings, key, value)
        db.commit()
        db.refresh(settings)
        return settings
