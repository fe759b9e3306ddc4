from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production", "test"] = "local"
    LOG_LEVEL: str = "INFO"
    SERVICE_NAME: str = "servewell"

    # Database
    DATABASE_URL: str
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Auth
    # Default placeholder keeps local/test runs from failing when no identity
    # provider is configured. Real deployments should override via env.
    JWT_SECRET: str = "test-jwt-secret"
    JWT_ALGORITHM: str = "HS256"
    COORDINATOR_ROLES: list[str] = ["coordinator", "admin", "service_role"]

    # Scoring oracle
    SCORING_ORACLE_ENABLED: bool = True
    SCORING_ORACLE_TIMEOUT_SECONDS: float = 20.0
    AI_DEFAULT_MODEL: str = "gpt-4o-mini"
    AI_TEMPERATURE: float = 0.2
    FALLBACK_AVAILABILITY_SCORE: float = 0.5
    FALLBACK_PASSION_SCORE: float = 0.5

    # Eligibility
    BACKGROUND_CHECK_PROVIDER: str = "manual"
    BACKGROUND_CHECK_VALIDITY_DAYS: int = 730
    BACKGROUND_CHECK_REMINDER_DAYS: int = 30
    LEADERSHIP_REQUIRES_BACKGROUND_CHECK: bool = False

    # Notifications
    COMMUNICATIONS_SERVICE_URL: str = "http://communications-service:8004"
    NOTIFICATION_TIMEOUT_SECONDS: float = 5.0
    FRONTEND_URL: str = "http://localhost:3000"

    # Redis (rate limiting + background worker)
    REDIS_URL: str = "redis://localhost:6379/0"
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
