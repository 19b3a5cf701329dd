"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from trivia_api.core.config import Settings, clear_settings_cache, get_settings


class TestSettings:
    """Test defaults, environment overrides and validation."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the documented defaults."""
        for name in (
            "MAX_CONCURRENT_REQUESTS",
            "MAX_REQUEST_QUEUE",
            "API_ENV",
            "POSTGRES_STATEMENT_TIMEOUT",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.max_concurrent_requests == 30
        assert settings.max_request_queue == 500
        assert settings.request_timeout == 15.0
        assert settings.cache_ttl_seconds == 300.0
        assert settings.max_retries == 3
        assert settings.default_questions_limit == 10
        assert settings.max_questions_limit == 20
        assert settings.postgres_statement_timeout == 10.0
        assert settings.single_flight_enabled is True

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test settings are read from environment variables."""
        monkeypatch.setenv("POSTGRES_HOST", "db.internal")
        monkeypatch.setenv("POSTGRES_PORT", "6543")
        monkeypatch.setenv("MAX_CONCURRENT_REQUESTS", "8")
        monkeypatch.setenv("SINGLE_FLIGHT_ENABLED", "false")
        monkeypatch.setenv("POSTGRES_STATEMENT_TIMEOUT", "2.5")

        settings = Settings()

        assert settings.postgres_host == "db.internal"
        assert settings.postgres_port == 6543
        assert settings.max_concurrent_requests == 8
        assert settings.single_flight_enabled is False
        assert settings.postgres_statement_timeout == 2.5

    def test_pool_max_below_min_rejected(self) -> None:
        """Test pool sizes must be consistent."""
        with pytest.raises(ValidationError, match="postgres_max_connections"):
            Settings(postgres_min_connections=10, postgres_max_connections=5)

    def test_default_limit_above_max_rejected(self) -> None:
        """Test the default question limit must fit under the maximum."""
        with pytest.raises(ValidationError, match="default_questions_limit"):
            Settings(default_questions_limit=15, max_questions_limit=10)

    def test_invalid_environment_rejected(self) -> None:
        """Test API_ENV is restricted to known environments."""
        with pytest.raises(ValidationError):
            Settings(api_env="qa")

    def test_invalid_cors_origin_rejected(self) -> None:
        """Test CORS origins must be URLs."""
        with pytest.raises(ValidationError, match="Invalid CORS origin"):
            Settings(allowed_origins="localhost:3000")

    def test_cors_origins_list(self) -> None:
        """Test the comma separated origins are split and trimmed."""
        settings = Settings(allowed_origins="http://a.test, https://b.test,")

        assert settings.cors_origins == ["http://a.test", "https://b.test"]

    def test_environment_flags(self) -> None:
        """Test environment helpers."""
        assert Settings(api_env="production").is_production
        assert Settings(api_env="development").is_development
        assert not Settings(api_env="staging").is_production

    def test_settings_are_immutable(self, test_settings: Settings) -> None:
        """Test settings cannot be modified after creation."""
        with pytest.raises(ValidationError):
            test_settings.port = 9999  # type: ignore[misc]

    def test_get_settings_is_cached(self) -> None:
        """Test the settings instance is reused until cleared."""
        first = get_settings()

        assert get_settings() is first
        clear_settings_cache()
        assert get_settings() is not first
