"""Test configuration and fixtures.

The database is replaced by an in-memory fake that mimics the parts of the
asyncpg pool API the application uses, so no PostgreSQL server is needed.
"""

from collections.abc import AsyncGenerator, Callable
from typing import Any

import pytest
import pytest_asyncio
from trivia_fakes import FakePoolFactory, make_question_row

from trivia_api.core.admission import AdmissionQueue
from trivia_api.core.cache import TTLCache
from trivia_api.core.config import Settings, clear_settings_cache
from trivia_api.core.database import Database, PoolConfig
from trivia_api.core.retry import RetryPolicy
from trivia_api.core.single_flight import SingleFlight
from trivia_api.services.question_service import QuestionService


@pytest.fixture(autouse=True)
def reset_settings_cache() -> None:
    """Never leak cached settings between tests."""
    clear_settings_cache()


@pytest.fixture
def make_row() -> Callable[..., dict[str, Any]]:
    return make_question_row


@pytest.fixture
def question_rows() -> list[dict[str, Any]]:
    """Three valid Easy questions."""
    return [make_question_row(i) for i in range(1, 4)]


@pytest.fixture
def pool_config() -> PoolConfig:
    return PoolConfig(
        host="db.test",
        port=5432,
        user="trivia",
        password="secret",  # nosec
        database="trivia_test",
        min_size=1,
        max_size=4,
        connect_timeout=1.0,
        command_timeout=1.0,
        max_inactive_connection_lifetime=30.0,
    )


@pytest.fixture
def pool_factory(question_rows: list[dict[str, Any]]) -> FakePoolFactory:
    return FakePoolFactory(question_rows)


@pytest.fixture
def unconnected_database(
    pool_config: PoolConfig, pool_factory: FakePoolFactory
) -> Database:
    return Database(pool_config, pool_factory=pool_factory, check_reachability=False)


@pytest_asyncio.fixture
async def database(unconnected_database: Database) -> AsyncGenerator[Database, None]:
    """Connected database backed by a fake pool."""
    await unconnected_database.connect()
    yield unconnected_database
    await unconnected_database.disconnect()


@pytest.fixture
def test_settings() -> Settings:
    """Settings suited to tests: no rate limiting, slow background loops."""
    return Settings(
        api_env="development",
        rate_limit_enabled=False,
        pool_check_interval=3600.0,
        cache_cleanup_interval=3600.0,
        retry_delay=0.0,
        retry_max_delay=0.0,
    )


@pytest.fixture
def fast_retry() -> RetryPolicy:
    return RetryPolicy(max_retries=2, base_delay=0.0, max_delay=0.0)


@pytest.fixture
def question_service(database: Database, fast_retry: RetryPolicy) -> QuestionService:
    return QuestionService(
        database,
        TTLCache(300.0),
        AdmissionQueue(max_concurrent=5, max_queue_length=10, queue_timeout_seconds=1.0),
        retry_policy=fast_retry,
        single_flight=SingleFlight(),
    )
