"""Configuration management for the NumberLand progress service."""

from typing import List, Optional
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
import json


class Settings(BaseSettings):
    """Application settings with validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    # Application
    APP_NAME: str = "NumberLand Progress Service"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production)$")
    SERVICE_NAME: str = "numberland-progress"
    SERVICE_PORT: int = 8004

    # Snapshot storage
    SNAPSHOT_BACKEND: str = Field(default="cache", pattern="^(cache|database)$")
    SNAPSHOT_NAMESPACE: str = "numberland"
    SNAPSHOT_WRITE_RETRIES: int = 3

    # Database
    DATABASE_URL: Optional[str] = None
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 40

    # Redis Cache
    REDIS_URL: Optional[str] = None

    # JWT
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 60
    PRIVILEGED_ROLES: List[str] = Field(default_factory=lambda: ["parent", "educator", "admin"])

    # Quiz scoring
    QUIZ_PASS_SCORE: int = 50
    QUIZ_COMPLETION_SCORE: int = 80

    # Weakness analysis
    WEAK_SCORE_THRESHOLD: float = 70.0
    STRONG_SCORE_THRESHOLD: float = 90.0
    WEAK_CATEGORY_RATIO: float = 0.6
    TOP_WEAK_ITEMS: int = 5
    TOP_WEAK_ACTIVITIES: int = 5
    WEAK_ITEM_DETAIL_THRESHOLD: float = 50.0

    # Prioritization
    PRIORITY_LOW_ATTEMPTS: int = 3
    PRIORITY_LOW_ATTEMPTS_BONUS: float = 20.0
    PRIORITY_INCOMPLETE_BONUS: float = 10.0
    MAX_FOCUS_ITEMS: int = 10

    # Learning plans
    PLAN_DURATION_DAYS: int = 7
    PLAN_ITEMS_PER_DAY: int = 3
    PLAN_MINUTES_PER_ITEM: int = 5
    PLAN_TARGET_SCORE: int = 80

    # Recommendations
    RECOMMENDATION_ACTIVITY_COUNT: int = 3
    RECOMMENDATION_SUGGESTED_ITEMS: int = 5
    RECOMMENDATION_COMPLETION_THRESHOLD: float = 30.0

    # Analysis windows
    ANALYSIS_WINDOW_DAYS: int = 7
    STATISTICS_WINDOW_DAYS: int = 30

    # Logging
    LOG_LEVEL: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    LOG_FORMAT: str = Field(default="json", pattern="^(json|plain)$")

    # CORS
    CORS_ORIGINS: List[str] = Field(default_factory=list)

    @field_validator("CORS_ORIGINS", "PRIVILEGED_ROLES", mode="before")
    def parse_list(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [item.strip() for item in v.split(",")]
        return v

    # Monitoring
    ENABLE_METRICS: bool = True

    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
