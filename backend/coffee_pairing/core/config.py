"""
Application configuration using pydantic-settings.

Every key can be overridden through the environment or a `.env` file.
"""
from functools import lru_cache
from typing import List, Literal
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_NAME: str = "Coffee Pairing"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"
    # Comma-separated
    CORS_ALLOWED_ORIGINS: str = "http://localhost:3000"

    DATABASE_URL: str = "sqlite+aiosqlite:///./coffee_pairing.db"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10

    # Bearer tokens are issued by the identity provider with this shared key
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Pairing
    PAIRING_DEFAULT_PERIOD_DAYS: int = Field(default=21, ge=1)
    PAIRING_MIN_PERIOD_DAYS: int = Field(default=7, ge=1)
    PAIRING_MAX_PERIOD_DAYS: int = Field(default=365, ge=1)
    PAIRING_HISTORY_LOOKBACK_PERIODS: int = Field(default=2, ge=0)
    # With this many eligible users or fewer, recent partners may be paired again
    PAIRING_SMALL_POPULATION_OVERRIDE: int = Field(default=2, ge=0)
    PAIRING_NOTIFICATIONS_ENABLED: bool = True

    PAIRING_SCHEDULER_ENABLED: bool = True
    PAIRING_SCHEDULER_INTERVAL_SECONDS: int = Field(default=3600, ge=1)

    REGULAR_PARTICIPANT_THRESHOLD: int = Field(default=10, ge=1)
    REGULAR_PARTICIPANT_ACHIEVEMENT_TYPE: str = "consistency"

    EMAIL_BACKEND: Literal["console", "smtp"] = "console"
    EMAIL_FROM: str = "coffee@example.com"
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True

    @model_validator(mode="after")
    def check_period_bounds(self) -> "Settings":
        if self.PAIRING_MIN_PERIOD_DAYS > self.PAIRING_MAX_PERIOD_DAYS:
            raise ValueError("PAIRING_MIN_PERIOD_DAYS must not exceed PAIRING_MAX_PERIOD_DAYS")
        return self

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ALLOWED_ORIGINS.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
