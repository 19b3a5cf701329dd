# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Configuration management using Pydantic Settings."""

from beartype import beartype
from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with immutable configuration.

    Durations are expressed in seconds.
    """

    model_config = SettingsConfigDict(
        env_file=None,
        env_file_encoding="utf-8",
        frozen=True,  # Immutable settings
        validate_default=True,
        extra="forbid",
    )

    # Database
    postgres_host: str = Field(
        default="localhost",
        description="PostgreSQL host",
        min_length=1,
    )
    postgres_port: int = Field(
        default=5432,
        ge=1,
        le=65535,
        description="PostgreSQL port",
    )
    postgres_user: str = Field(default="postgres", min_length=1)
    postgres_password: str = Field(default="postgres")
    postgres_name: str = Field(
        default="trivia_db",
        description="PostgreSQL database name",
        min_length=1,
    )
    postgres_min_connections: int = Field(
        default=5,
        ge=0,
        le=50,
        description="Minimum database pool size",
    )
    postgres_max_connections: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Maximum database pool size",
    )
    postgres_connection_timeout: float = Field(
        default=5.0,
        gt=0,
        le=60.0,
        description="Connection establishment and acquisition timeout",
    )
    postgres_query_timeout: float = Field(
        default=15.0,
        gt=0,
        le=300.0,
        description="Query execution timeout",
    )
    postgres_statement_timeout: float = Field(
        default=10.0,
        gt=0,
        le=300.0,
        description="Server-side statement timeout",
    )
    postgres_idle_timeout: float = Field(
        default=30.0,
        ge=0,
        le=3600.0,
        description="Idle connection lifetime before it is closed",
    )

    # Admission control
    max_concurrent_requests: int = Field(
        default=30,
        ge=1,
        le=1000,
        description="Maximum concurrently executing database operations",
    )
    max_request_queue: int = Field(
        default=500,
        ge=0,
        le=100_000,
        description="Maximum number of operations waiting for a slot",
    )
    request_timeout: float = Field(
        default=15.0,
        gt=0,
        le=300.0,
        description="Maximum time an operation may wait in the queue",
    )

    # Caching
    cache_ttl_seconds: float = Field(
        default=300.0,
        gt=0,
        le=86400.0,
        description="Question cache time-to-live",
    )
    cache_cleanup_interval: float = Field(
        default=60.0,
        gt=0,
        le=3600.0,
        description="Interval between expired-entry sweeps",
    )
    single_flight_enabled: bool = Field(
        default=True,
        description="Share one in-flight query between identical cache misses",
    )

    # Pool monitoring
    pool_check_interval: float = Field(
        default=60.0,
        gt=0,
        le=3600.0,
        description="Interval between pool health checks",
    )
    pool_warning_threshold: float = Field(
        default=0.8,
        gt=0,
        le=1.0,
        description="Pool utilization ratio that triggers a warning",
    )
    pool_probe_timeout: float = Field(
        default=5.0,
        gt=0,
        le=60.0,
        description="Timeout for the liveness probe query",
    )

    # Retry
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per database operation",
    )
    retry_delay: float = Field(
        default=1.0,
        ge=0,
        le=30.0,
        description="Base delay for exponential backoff",
    )
    retry_max_delay: float = Field(
        default=10.0,
        ge=0,
        le=120.0,
        description="Upper bound for a single backoff delay",
    )

    # Questions
    default_questions_limit: int = Field(default=10, ge=1, le=100)
    max_questions_limit: int = Field(default=20, ge=1, le=100)

    # API
    app_name: str = Field(default="Trivia Questions API", min_length=1)
    service_name: str = Field(default="get-questions", min_length=1)
    api_host: str = Field(
        default="0.0.0.0",  # nosec B104 - Binding to all interfaces is needed for containerized deployment
        description="API host to bind to",
    )
    port: int = Field(default=4001, ge=1, le=65535, description="API port")
    api_env: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="API environment",
    )
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:8088,https://trivia60.com",
        description="Comma separated list of allowed CORS origins",
    )

    # Rate limiting
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_window: float = Field(
        default=900.0,
        gt=0,
        le=86400.0,
        description="Rate limiting window",
    )
    rate_limit_max: int = Field(
        default=2000,
        ge=1,
        description="Requests allowed per client per window",
    )

    @field_validator("postgres_max_connections")
    @classmethod
    def validate_pool_sizes(cls: type["Settings"], v: int, info: ValidationInfo) -> int:
        """Ensure pool max is greater than pool min."""
        if "postgres_min_connections" in info.data:
            min_size = info.data["postgres_min_connections"]
            if v < min_size:
                raise ValueError(
                    f"postgres_max_connections ({v}) must be >= "
                    f"postgres_min_connections ({min_size})"
                )
        return v

    @field_validator("max_questions_limit")
    @classmethod
    def validate_question_limits(
        cls: type["Settings"], v: int, info: ValidationInfo
    ) -> int:
        """Ensure the default limit fits under the maximum."""
        default = info.data.get("default_questions_limit")
        if default is not None and default > v:
            raise ValueError(
                f"default_questions_limit ({default}) must be <= max_questions_limit ({v})"
            )
        return v

    @field_validator("allowed_origins")
    @classmethod
    def validate_cors_origins(cls: type["Settings"], v: str) -> str:
        """Validate CORS origins are proper URLs."""
        for origin in v.split(","):
            origin = origin.strip()
            if origin and origin != "*" and not origin.startswith(("http://", "https://")):
                raise ValueError(f"Invalid CORS origin: {origin}")
        return v

    @property
    @beartype
    def cors_origins(self) -> list[str]:
        """Allowed origins as a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    @beartype
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.api_env == "production"

    @property
    @beartype
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.api_env == "development"


_settings: Settings | None = None


@beartype
def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


@beartype
def clear_settings_cache() -> None:
    """Clear settings cache (for testing)."""
    global _settings
    _settings = None
