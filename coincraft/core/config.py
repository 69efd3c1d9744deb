import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional

class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Database
    DATABASE_URL: Optional[str] = None
    TEST_DATABASE_URL: Optional[str] = None

    # Envelope periods (0 = Monday ... 6 = Sunday, same as date.weekday())
    WEEK_START_WEEKDAY: int = 0

    # Extra attempts after a conditional write loses a race
    STATE_WRITE_RETRIES: int = 2

    # Dashboard
    MAX_NUDGES: int = 3

    # CORS, comma-separated
    CORS_ORIGINS: str = "http://localhost:3000"

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Check that persistence is configured.

    Without DATABASE_URL the service still runs, but streaks and envelopes
    live in process memory and vanish on restart. Strict mode turns that
    warning into a RuntimeError.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("coincraft")
    strict_mode = getattr(cfg, "CONFIG_STRICT", False) if strict is None else strict

    if getattr(cfg, "DATABASE_URL", None):
        return True

    message = "Missing required configuration: DATABASE_URL"
    if strict_mode:
        raise RuntimeError(message)
    log.warning(f"{message}; streak and envelope state is kept in memory")
    return True
