# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Construction and lifecycle of the process-wide service graph."""

import logging

from attrs import define, field
from beartype import beartype

from .core.admission import AdmissionQueue
from .core.cache import TTLCache
from .core.config import Settings
from .core.database import Database, PoolConfig
from .core.pool_monitor import MonitorConfig, PoolMonitor
from .core.retry import RetryPolicy
from .core.single_flight import SingleFlight
from .services.question_service import QuestionService

logger = logging.getLogger(__name__)


@define
class AppServices:
    """Everything a running API instance owns."""

    settings: Settings = field()
    database: Database = field()
    cache: TTLCache = field()
    admission: AdmissionQueue = field()
    monitor: PoolMonitor = field()
    questions: QuestionService = field()
    started: bool = field(default=False)

    async def start(self) -> None:
        """Connect the pool, then start background tasks.

        Raises:
            FatalConfigError: the pool cannot be built; the process must not
                serve traffic.
        """
        await self.database.connect()
        await self.monitor.start()
        await self.cache.start_sweeper(self.settings.cache_cleanup_interval)
        self.started = True
        logger.info("Question services started")

    async def stop(self) -> None:
        """Stop background tasks and close the pool."""
        await self.monitor.stop()
        await self.cache.stop_sweeper()
        await self.database.disconnect()
        self.started = False
        logger.info("Question services stopped")


@beartype
def build_services(
    settings: Settings, *, database: Database | None = None
) -> AppServices:
    """Wire the service graph from settings."""
    database = database or Database(PoolConfig.from_settings(settings))
    cache = TTLCache(settings.cache_ttl_seconds)
    admission = AdmissionQueue(
        max_concurrent=settings.max_concurrent_requests,
        max_queue_length=settings.max_request_queue,
        queue_timeout_seconds=settings.request_timeout,
    )
    monitor = PoolMonitor(
        database,
        MonitorConfig(
            interval_seconds=settings.pool_check_interval,
            warning_threshold=settings.pool_warning_threshold,
            probe_timeout=settings.pool_probe_timeout,
        ),
    )
    questions = QuestionService(
        database,
        cache,
        admission,
        retry_policy=RetryPolicy(
            max_retries=settings.max_retries,
            base_delay=settings.retry_delay,
            max_delay=settings.retry_max_delay,
        ),
        single_flight=SingleFlight() if settings.single_flight_enabled else None,
        default_limit=settings.default_questions_limit,
        max_limit=settings.max_questions_limit,
    )
    return AppServices(
        settings=settings,
        database=database,
        cache=cache,
        admission=admission,
        monitor=monitor,
        questions=questions,
    )
