"""Application settings and configuration management."""
from __future__ import annotations

from typing import Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interview.db")

    LLM_PACING_DELAY_S: float = Field(default=1.5, ge=0.0)
    LLM_RETRY_DELAYS_S: Tuple[float, ...] = (1.5, 3.0)
    LLM_TIMEOUT_S: float = Field(default=30.0, ge=0.1)

    RECENT_TOPIC_WINDOW: int = Field(default=3, ge=1)
    WEAK_TOPIC_THRESHOLD: float = 5.0
    RECOMMENDED_TOPIC_COUNT: int = Field(default=3, ge=1)
    ROLLING_WINDOW: int = Field(default=5, ge=1)

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()
