"""Runtime configuration, read from ``IMS_*`` environment variables or ``.env``."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


class Settings(BaseSettings):

    DATABASE_URL: str = Field(default=f"sqlite:///{_DATA_DIR / 'ims.db'}")
    DB_ECHO: bool = Field(default=False)

    # Longest a statement waits on a row lock before failing with a conflict
    LOCK_TIMEOUT_SECONDS: float = Field(default=5, gt=0)

    RESERVATION_TTL_HOURS: int = Field(default=24, gt=0)
    CONFIRMED_RESERVATION_TTL_HOURS: int = Field(default=48, gt=0)

    MAX_CONFLICT_RETRIES: int = Field(default=3, ge=1)
    SWEEP_INTERVAL_SECONDS: int = Field(default=60, gt=0)

    LOG_LEVEL: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_prefix="IMS_", env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
