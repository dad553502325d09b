"""Configuration management for the Lichess scraper with safe test defaults."""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment types."""
    TEST = "TEST"
    DEV = "DEV"
    PROD = "PROD"


class AppSettings(BaseSettings):
    """Application settings with safe defaults and dotenv support.

    Environment variables can be set directly or via .env file.
    Durations are in seconds.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

    # ===================
    # Environment
    # ===================
    ENV: Environment = Field(
        default=Environment.DEV,
        description='Application environment: TEST, DEV, or PROD'
    )

    # ===================
    # HTTP Client
    # ===================
    LICHESS_API_BASE: str = Field(
        default='https://lichess.org/api',
        description='Lichess API base URL'
    )
    TIMEOUT_S: float = Field(default=15.0, description='HTTP request timeout in seconds')
    USER_AGENT: str = Field(
        default='lichess-scraper/0.1 (+https://lichess.org/api)',
        description='User agent for HTTP requests'
    )

    # ===================
    # Rate Limits
    # ===================
    MAX_CONCURRENT_REQUESTS: int = Field(
        default=5,
        ge=1,
        description='Maximum player tasks running at once'
    )
    MIN_SPACING_S: float = Field(
        default=0.2,
        ge=0.0,
        description='Pause after each task completes before the next one may start'
    )

    # ===================
    # Retry & Backoff
    # ===================
    RETRY_MAX: int = Field(default=3, ge=0, description='Retries after the first attempt')
    RETRY_BASE_DELAY_S: float = Field(default=1.0, ge=0.0, description='Base backoff delay')
    RETRY_MAX_DELAY_S: float = Field(default=10.0, ge=0.0, description='Backoff ceiling')
    RETRY_JITTER_S: float = Field(default=1.0, ge=0.0, description='Upper bound of random jitter')

    # ===================
    # Report
    # ===================
    TOP_PLAYERS: int = Field(default=50, ge=1, le=200, description='Number of ranked players to fetch')
    DAYS_TO_FETCH: int = Field(default=30, ge=1, description='Length of the daily window')
    DEFAULT_RATING: int = Field(default=1500, description='Rating used when a player has none')
    OUTPUT_DIR: Path = Field(default=Path('dist'), description='Directory for CSV exports')

    # ===================
    # Logging
    # ===================
    LOG_LEVEL: str = Field(default='INFO', description='Logging level')
    LOG_FORMAT: str = Field(default='text', description='Log format: json, text, or structured')
    LOG_FILE: Optional[Path] = Field(default=None, description='Log file path')
    LOG_MAX_BYTES: int = Field(default=10 * 1024 * 1024, description='Rotate log file at this size')
    LOG_BACKUP_COUNT: int = Field(default=3, description='Rotated log files to keep')

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of: {', '.join(valid_levels)}")
        return v_upper

    @field_validator('LOG_FORMAT')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in ('json', 'text', 'structured'):
            raise ValueError("LOG_FORMAT must be one of: json, text, structured")
        return v_lower

    @field_validator('ENV', mode='before')
    @classmethod
    def validate_env(cls, v) -> Environment:
        """Validate and normalize environment value."""
        if isinstance(v, Environment):
            return v
        if isinstance(v, str):
            v_upper = v.upper()
            if v_upper in ('TEST', 'TESTING'):
                return Environment.TEST
            elif v_upper in ('DEV', 'DEVELOPMENT', 'LOCAL'):
                return Environment.DEV
            elif v_upper in ('PROD', 'PRODUCTION'):
                return Environment.PROD
        raise ValueError(f"ENV must be TEST, DEV, or PROD (got: {v})")

    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.ENV == Environment.TEST


@lru_cache()
def get_settings() -> AppSettings:
    """Get cached application settings.

    Loads settings from:
    1. Environment variables
    2. .env file (if exists)
    3. Default values

    Returns:
        AppSettings: Cached settings instance
    """
    return AppSettings()
