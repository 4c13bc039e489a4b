"""
Configuration management for the vocabulary review engine
"""

from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///data/lexireview.db", env="DATABASE_URL"
    )

    # Application Configuration
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    debug: bool = Field(default=False, env="DEBUG")
    timezone: str = Field(default="UTC", env="TIMEZONE")

    # Learners and languages
    supported_languages: str = Field(default="de,fr,ja", env="SUPPORTED_LANGUAGES")
    allowed_learners: str = Field(default="", env="ALLOWED_LEARNERS")

    # Review session Configuration
    default_cards_per_session: int = Field(default=20, env="DEFAULT_CARDS_PER_SESSION")
    max_cards_per_session: int = Field(default=100, env="MAX_CARDS_PER_SESSION")
    session_lock_timeout_minutes: int = Field(
        default=5, env="SESSION_LOCK_TIMEOUT_MINUTES"
    )

    # Spaced Repetition Configuration
    default_ease_factor: float = Field(default=2.5, env="DEFAULT_EASE_FACTOR")
    min_ease_factor: float = Field(default=1.3, env="MIN_EASE_FACTOR")

    # Statistics
    daily_stats_default_days: int = Field(default=90, env="DAILY_STATS_DEFAULT_DAYS")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Reject names the IANA database does not know"""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @property
    def supported_languages_list(self) -> list[str]:
        """Convert supported_languages string to list of language codes"""
        return [
            code.strip()
            for code in self.supported_languages.split(",")
            if code.strip()
        ]

    @property
    def allowed_learners_list(self) -> list[str]:
        """Convert allowed_learners string to list of learner IDs"""
        if not self.allowed_learners.strip():
            return []
        return [
            learner_id.strip()
            for learner_id in self.allowed_learners.split(",")
            if learner_id.strip()
        ]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def get_database_path() -> str:
    """Get the database file path from URL"""
    settings = get_settings()
    if settings.database_url.startswith("sqlite:///"):
        return settings.database_url.replace("sqlite:///", "")
    return "data/lexireview.db"
