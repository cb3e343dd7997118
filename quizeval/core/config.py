"""
Engine configuration.

Centralized configuration management with environment variables.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings"""

    model_config = SettingsConfigDict(
        env_prefix="QUIZEVAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or text
    LOG_FILE: Optional[str] = None

    # Symbolic back end
    SYMBOLIC_BACKEND_ENABLED: bool = True
    MAX_EXPRESSION_LENGTH: int = 500
    MAX_EXPONENT: int = 100
    # Decimal digits a constant power may produce (99^99 has 198)
    MAX_POWER_DIGITS: int = 1000
    # Estimated terms after expansion above which expand/simplify strategies are skipped
    MAX_EXPANSION_TERMS: int = 5000

    # Scoring defaults
    DEFAULT_NUMBER_TOLERANCE: float = 0.01
    DEFAULT_MATH_TOLERANCE: float = 0.0001

    # Progress reporting
    RECENT_ACTIVITY_LIMIT: int = 5


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
