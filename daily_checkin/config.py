"""Application configuration."""
from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_debug: bool = True
    log_level: str = "DEBUG"

    # Database - required, read from environment
    database_url: str = Field(
        ...,
        description="Database connection URL (required)",
    )
    db_pool_size: int = Field(
        default=20,
        description="DB connection pool size (ignored for SQLite)",
    )
    db_max_overflow: int = Field(
        default=10,
        description="Max overflow connections (ignored for SQLite)",
    )

    # Redis - optional, the status cache is disabled without it
    redis_url: str | None = Field(
        default=None,
        description="Redis connection URL for the check-in status cache",
    )
    status_cache_ttl: int = Field(
        default=300,
        description="Check-in status cache TTL in seconds",
    )
    status_cache_unchecked_ttl: int = Field(
        default=30,
        ge=1,
        description="TTL in seconds for status cached before today's check-in",
    )

    # JWT issued by the identity provider bridge
    jwt_secret_key: str = Field(
        ...,
        description="JWT secret key (required, minimum 32 characters)",
    )
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60

    # Admin API (X-API-Key header)
    admin_api_key: str = Field(
        ...,
        description="API key for admin endpoints (required)",
    )

    # Reporting clock (original deployment reports in UTC+8)
    reporting_utc_offset_hours: int = Field(
        default=8,
        ge=-12,
        le=14,
        description="Fixed UTC offset used to derive the check-in calendar day",
    )

    # Reward policy
    reward_base_exp: int = Field(default=10, ge=0)
    reward_code_floor: Decimal = Field(default=Decimal("1.00"), ge=0)
    reward_streak_bonuses: dict[int, Decimal] = Field(
        default_factory=lambda: {
            7: Decimal("0.50"),
            15: Decimal("1.00"),
            30: Decimal("2.00"),
        },
        description="Consecutive-day threshold -> code amount bonus",
    )
    reward_level_increment: Decimal = Field(default=Decimal("0.10"), ge=0)

    # Allocation engine
    checkin_max_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts for a check-in hitting transient persistence errors",
    )
    checkin_retry_max_wait: float = Field(
        default=0.5,
        ge=0,
        description="Upper bound in seconds for the backoff between check-in attempts",
    )
    claim_max_attempts: int = Field(
        default=10,
        ge=1,
        description="Code claim attempts when concurrent claimants win the race",
    )
    max_batch_size: int = Field(default=100, ge=1)
    max_generate_count: int = Field(default=1000, ge=1)

    # /metrics is mounted only when ENABLE_METRICS=true (read by the instrumentator)

    # Sentry
    sentry_dsn: str | None = None
    sentry_traces_sample_rate: float = Field(default=0.05, ge=0.0, le=1.0)

    # CORS
    cors_origins: str = "http://localhost:3000"

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret_key(cls, v: str) -> str:
        """Validate JWT secret key length."""
        if len(v) < 32:
            raise ValueError("jwt_secret_key must be at least 32 characters long")
        return v

    @field_validator("admin_api_key")
    @classmethod
    def validate_admin_api_key(cls, v: str) -> str:
        """Validate admin API key strength."""
        if len(v) < 16:
            raise ValueError("admin_api_key must be at least 16 characters long")
        return v

    @field_validator("reward_streak_bonuses")
    @classmethod
    def validate_streak_bonuses(cls, v: dict[int, Decimal]) -> dict[int, Decimal]:
        """Bonuses must not decrease as the threshold grows."""
        previous = Decimal("0")
        for threshold in sorted(v):
            if threshold < 1:
                raise ValueError("streak bonus thresholds must be >= 1")
            if v[threshold] < previous:
                raise ValueError("streak bonuses must be non-decreasing")
            previous = v[threshold]
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate settings for production environment."""
        if self.app_env == "production":
            if self.app_debug:
                raise ValueError("app_debug must be False in production environment")

            origins = [o.strip() for o in self.cors_origins.split(",")]
            if "*" in origins:
                raise ValueError(
                    "CORS wildcard '*' is not allowed in production environment. "
                    "Specify explicit allowed origins."
                )

        return self

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
