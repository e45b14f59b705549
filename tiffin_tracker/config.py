"""
Configuration management for TiffinTracker
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "TiffinTracker"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Storage
    DATABASE_URL: str = "sqlite:///./tiffintracker.db"
    STORAGE_BACKEND: str = "sqlite"  # "sqlite" or "memory"

    # Export
    EXPORT_DIR: str = "./exports"

    # Defaults for the settings row on first access
    DEFAULT_HALF_PRICE: float = 50.0
    DEFAULT_FULL_PRICE: float = 60.0
    DEFAULT_CURRENCY: str = "INR"
    DEFAULT_DISPLAY_NAME: str = "User"

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
