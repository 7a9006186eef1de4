"""
Engine Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated. Tunables that
are content decisions rather than deployment decisions (exercise type
ratios, level order) live in practice_engine/config/default.yaml.

Usage:
    from practice_engine.config import settings

    # Access settings
    retention = settings.FSRS_DEFAULT_RETENTION
    timeout = settings.GRADING_EXECUTION_TIMEOUT_SECONDS
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Scheduler selection: "fsrs" (default) or "sm2" (legacy)
    SCHEDULER_ALGORITHM: str = "fsrs"

    # FSRS
    FSRS_DEFAULT_RETENTION: float = 0.9
    FSRS_MAX_INTERVAL_DAYS: int = 365
    # Fuzzing adds random jitter to intervals; off so reviews are reproducible
    FSRS_ENABLE_FUZZING: bool = False

    # Post-lapse stability is capped at this fraction of the pre-lapse value
    LAPSE_STABILITY_CEILING: float = 0.45

    # Legacy SM-2
    SM2_INITIAL_EASE_FACTOR: float = 2.5
    SM2_MIN_EASE_FACTOR: float = 1.3
    SM2_MAX_EASE_FACTOR: float = 3.0
    SM2_INITIAL_INTERVAL: int = 1
    SM2_GRADUATING_INTERVAL: int = 6

    # Rating inference thresholds (milliseconds)
    RATING_FAST_THRESHOLD_MS: int = 15_000
    RATING_SLOW_THRESHOLD_MS: int = 30_000

    # Legacy quality inference
    QUALITY_FAST_THRESHOLD_MS: int = 10_000
    QUALITY_SLOW_THRESHOLD_MS: int = 30_000
    QUALITY_MIN_REPS_FOR_EASY: int = 2

    # Grading
    GRADING_EXECUTION_TIMEOUT_SECONDS: float = 5.0
    GRADING_TELEMETRY_ENABLED: bool = True

    # Docker sandbox (execution oracle)
    SANDBOX_ENABLED: bool = True
    SANDBOX_TIMEOUT_SECONDS: int = 10


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


# Shipped as package data next to this module
DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load engine configuration from the packaged default.yaml."""
    config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()
