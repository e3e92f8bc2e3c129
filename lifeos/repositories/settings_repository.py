"""
Settings repository - Data access layer for Settings model.
Handles all database queries related to settings.
"""
from sqlalchemy.orm import Session
from lifeos.models import Settings


class SettingsRepository:
    """Repository for Settings data access"""

    @staticmethod
    def get(db: Session) -> Settings:
        """
        Get settings (creates with defaults if not exists).

        The new row is only flushed so that it joins whatever transaction
        the caller is running.

        Returns:
            Settings object
        """
        settings = db.query(Settings).first()
        if not settings:
            settings = Settings()
            db.add(settings)
            db.flush()
        return settings

    @staticmethod
    def update(db: Session, settings: Settings, values: dict) -> Settings:
        """
        Update settings.

        Args:
            db: Database session
            settings: Settings object to modify
            values: Field values to apply

        Returns:
            Updated settings
        """
        for key, value in values.items():
            setattr(settings, key, value)
        db.commit()
        db.refresh(settings)
        return settings
