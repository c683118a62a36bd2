"""
Repository for key/value system settings.

Values are stored as strings and read from the database at each use.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.logging import get_logger
from core.utils import utc_now
from database.models import Setting

logger = get_logger("system_settings_repository")

DEFAULT_SETTINGS: dict[str, str] = {
    "commission_percent": "0.10",
    "company_name": "Car Lead Management",
    "default_timezone": "UTC",
    "session_timeout_hours": "24",
    "magic_link_expiry_minutes": "15",
    "notify_new_lead": "true",
    "notify_status_change": "true",
    "notify_commission_due": "true",
    "log_user_activity": "true",
}

TRUE_VALUES = {"true", "1", "yes", "on"}


class SettingsRepository:
    """Repository for Setting rows"""

    def __init__(self, db: Session):
        self.db = db

    def get_setting(self, key: str) -> Optional[Setting]:
        return self.db.query(Setting).filter(Setting.key == key).first()

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        setting = self.get_setting(key)
        return setting.value if setting else default

    def set(self, key: str, value: str) -> Setting:
        """Insert or update a setting"""
        try:
            setting = self.get_setting(key)
            if setting:
                setting.value = value
                setting.updated_at = utc_now()
            else:
                setting = Setting(key=key, value=value)
                self.db.add(setting)

            self.db.commit()
            self.db.refresh(setting)

            logger.info(f"Setting {key} updated")
            return setting

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error updating setting {key}: {e}")
            raise

    def all(self) -> dict[str, str]:
        return {setting.key: setting.value for setting in self.db.query(Setting).order_by(Setting.key).all()}

    def get_decimal(self, key: str, default: Decimal) -> Decimal:
        value = self.get(key)
        if value is None:
            return default
        try:
            return Decimal(value)
        except InvalidOperation:
            logger.warning(f"Setting {key} is not a number: {value!r}")
            return default

    def get_int(self, key: str, default: int) -> int:
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Setting {key} is not an integer: {value!r}")
            return default

    def get_bool(self, key: str, default: bool) -> bool:
        value = self.get(key)
        if value is None:
            return default
        return value.strip().lower() in TRUE_VALUES

    def seed_defaults(self) -> list[str]:
        """Write default settings that are not yet present, returning the keys added"""
        existing = {key for (key,) in self.db.query(Setting.key).all()}
        added = []

        for key, value in DEFAULT_SETTINGS.items():
            if key not in existing:
                self.db.add(Setting(key=key, value=value))
                added.append(key)

        self.db.commit()
        return added
