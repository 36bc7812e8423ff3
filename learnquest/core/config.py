from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "postgresql+asyncpg://localhost:5432/learnquest"

    # App settings
    app_name: str = "LearnQuest"
    debug: bool = False
    log_level: str = "INFO"

    # Profile commits
    commit_max_retries: int = Field(default=5, ge=1)
    commit_retry_backoff_seconds: float = Field(default=0.01, ge=0)

    # Achievement catalog
    catalog_cache_ttl_seconds: float = Field(default=300, ge=0)  # 5 minutes

    # Streaks are counted in calendar days of this zone
    streak_timezone: str = "UTC"

    # XP economy defaults (admins can override per action)
    xp_quiz_complete: int = Field(default=10, ge=0)
    xp_module_complete: int = Field(default=50, ge=0)
    xp_activity_sent: int = Field(default=20, ge=0)
    xp_per_correct_answer: int = Field(default=10, ge=0)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("streak_timezone")
    @classmethod
    def validate_streak_timezone(cls, value: str) -> str:
        """Reject zone names the interpreter can't resolve."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone: {value!r}")
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()


settings = Settings()
