#config.py
import os
from datetime import datetime
from pydantic import Field, validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict
from typing import List
from functools import lru_cache

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")
    # Application Settings
    APP_NAME: str = "Healthcare Portal API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True  # Can disable in production

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.environ.get("PORT", 8000))

    # Database Settings
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite:///./healthcare.db")

    # CORS Settings (accept comma-separated strings to avoid JSON parsing in env)
    ALLOWED_ORIGINS: str = os.environ.get("ALLOWED_ORIGINS", "*")
    ALLOWED_METHODS: str = os.environ.get("ALLOWED_METHODS", "GET,POST,PUT,PATCH,DELETE,OPTIONS")
    ALLOWED_HEADERS: str = os.environ.get("ALLOWED_HEADERS", "*")
    CORS_ALLOW_CREDENTIALS: bool = True

    # Middleware settings
    GZIP_MIN_SIZE: int = 500
    MAX_REQUEST_SIZE: int = 1024 * 1024  # bytes

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Scheduling Settings (naive local time of the practice)
    SLOT_DAY_START: str = "09:00"
    SLOT_DAY_END: str = "17:00"
    SLOT_INTERVAL_MINUTES: int = Field(30, gt=0, le=24 * 60)
    CANCELLATION_NOTICE_HOURS: int = Field(24, ge=0)
    DEFAULT_DURATION_MINUTES: int = Field(30, gt=0, le=480)
    EARLIEST_APPOINTMENT_DATE: str = "2000-01-01"

    # Listing
    DEFAULT_PAGE_LIMIT: int = Field(100, gt=0)

    @validator('SLOT_DAY_START', 'SLOT_DAY_END')
    def validate_clock(cls, v):
        try:
            datetime.strptime(v, "%H:%M")
        except ValueError:
            raise ValueError('must be a time formatted as HH:MM')
        return v

    @validator('SLOT_DAY_END')
    def validate_day_end(cls, v, values):
        start = values.get('SLOT_DAY_START')
        if start and datetime.strptime(v, "%H:%M") <= datetime.strptime(start, "%H:%M"):
            raise ValueError('must be later than SLOT_DAY_START')
        return v

    @validator('EARLIEST_APPOINTMENT_DATE')
    def validate_earliest_date(cls, v):
        try:
            datetime.strptime(v, "%Y-%m-%d")
        except ValueError:
            raise ValueError('must be a date formatted as YYYY-MM-DD')
        return v

    # Helper methods for list envs
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
    def allowed_methods_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_METHODS)

    @property
    def allowed_headers_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_HEADERS)

@lru_cache()
def get_settings() -> Settings:
    s = Settings()
    # Normalize ALLOWED_ORIGINS if provided as comma-separated string env var CORS_ORIGINS
    cors_env = os.environ.get("CORS_ORIGINS")
    if cors_env:
        s.ALLOWED_ORIGINS = cors_env
    return s

settings: Settings = get_settings()
