from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ==============================
    # Application
    # ==============================
    APP_NAME: str = "CraftFlow"
    ENVIRONMENT: str = "local"

    # ==============================
    # Database
    # ==============================
    DATABASE_URL: str = "sqlite:///./craftflow.db"

    # ==============================
    # Logging
    # ==============================
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # ==============================
    # Ledger
    # ==============================
    LEDGER_BACKEND: str = "sql"
    LEDGER_KEY_PREFIX: str = "dsystem_"
    LEDGER_RECONCILE_ON_LOAD: bool = False
    LEDGER_ENFORCE_UNIQUE_BARCODE: bool = True

    # ==============================
    # Reports
    # ==============================
    LOW_STOCK_THRESHOLD: int = 10
    RECENT_ACTIVITY_LIMIT: int = 5

    # ==============================
    # Security
    # ==============================
    AUTH_USERNAME: Optional[str] = None
    AUTH_PASSWORD: Optional[str] = None
    AUTH_PASSWORD_HASH: Optional[str] = None
    AUTH_PASSWORD_SALT: Optional[str] = None
    AUTH_PBKDF2_ROUNDS: int = 200_000
    SESSION_SECRET: Optional[str] = None
    SESSION_COOKIE: str = "craftflow_session"


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader (once per process)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
