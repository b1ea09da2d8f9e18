"""
Application Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated.

Scheduling and risk thresholds live here as policy constants so they can be
tuned per deployment without touching the algorithms.

Usage:
    from studyplan.config import settings

    # Access settings
    db_url = settings.POSTGRES_URL
    floor = settings.SM2_MIN_EASINESS
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Study Planner"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # PostgreSQL
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "studyplan"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "studyplan"

    @property
    def POSTGRES_URL(self) -> str:
        """Async PostgreSQL connection URL."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def POSTGRES_URL_SYNC(self) -> str:
        """Sync PostgreSQL connection URL for Alembic migrations."""
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    # Rate limiting (SlowAPI limit strings)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "100/minute"

    # SM-2 review scheduling
    SM2_INITIAL_EASINESS: float = 2.5
    SM2_MIN_EASINESS: float = 1.3
    SM2_PASSING_QUALITY: int = 3  # quality >= this counts as a successful recall
    SM2_FIRST_INTERVAL_DAYS: int = 1
    SM2_SECOND_INTERVAL_DAYS: int = 6
    SM2_EASINESS_DECIMALS: int = 2

    # Flashcard mastery classification (deck stats)
    FLASHCARD_MASTERED_MIN_EASINESS: float = 2.5
    FLASHCARD_MASTERED_MIN_REPETITIONS: int = 3

    # Review queue
    REVIEW_DEFAULT_LIMIT: int = 50

    # Exam risk policy. The order in which these are evaluated is fixed in
    # ExamRiskScorer; only the numbers are configurable.
    RISK_URGENT_WINDOW_DAYS: int = 7
    RISK_URGENT_REMAINING_RATIO: float = 0.5
    RISK_WATCH_WINDOW_DAYS: int = 14
    RISK_WATCH_REMAINING_RATIO: float = 0.3
    RISK_LOW_PROGRESS_RATIO: float = 0.8
    RISK_MEDIUM_PROGRESS_RATIO: float = 0.4
    RISK_PROGRESS_PERCENTAGE_CAP: int = 120

    # Subjects without a color get this one in score records
    SUBJECT_DEFAULT_COLOR: str = "#FFC107"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load application configuration from config/default.yaml."""
    config_path = Path(__file__).parent.parent.parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()
