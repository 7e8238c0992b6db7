#config.py
import os
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict
from typing import Optional, List
from functools import lru_cache

import pytz


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")
    # Application Settings
    APP_NAME: str = "Clinic Scheduling API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Database Settings
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite:///./clinic.db")

    # CORS Settings (accept comma-separated strings to avoid JSON parsing in env)
    ALLOWED_ORIGINS: str = os.environ.get("ALLOWED_ORIGINS", "*")

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Scheduling
    CLINIC_TIMEZONE: str = "Asia/Ho_Chi_Minh"
    SLOT_MINUTES: int = 30
    DEFAULT_WORK_START: str = "08:00"  # HH:MM
    DEFAULT_WORK_END: str = "17:00"  # HH:MM
    SINGLE_PATIENT_IN_PROGRESS: bool = True

    # Medical exam edit lock
    EDIT_WINDOW_HOURS: int = 24
    # Legacy exams without created_at stay editable while this is on
    EDIT_WINDOW_ALLOW_MISSING_CREATED_AT: bool = True

    # Per-doctor locking ("memory" for a single process, "redis" across workers)
    LOCK_BACKEND: str = "memory"
    REDIS_URL: Optional[str] = os.environ.get("REDIS_URL", None)
    LOCK_TIMEOUT_SECONDS: int = 10

    # Health Check
    HEALTH_CHECK_ENABLED: bool = True

    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    @property
    def clinic_tz(self):
        return pytz.timezone(self.CLINIC_TIMEZONE)


@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings: Settings = get_settings()
