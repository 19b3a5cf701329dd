# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Background monitor that checks pool health and triggers recovery."""

import asyncio
import contextlib
import logging

from attrs import field, frozen

from .database import Database

logger = logging.getLogger(__name__)


@frozen
class MonitorConfig:
    """Pool monitor configuration."""

    interval_seconds: float = field(default=60.0)
    warning_threshold: float = field(default=0.8)
    probe_timeout: float = field(default=5.0)


class PoolMonitor:
    """Periodically probes the pool and recreates it when the probe fails.

    The monitor runs on its own timer, independent of request traffic. A
    tick that triggers recreation finishes only once the new pool has
    answered its startup query, so the next tick is armed against a pool
    that is known to be reachable.
    """

    def __init__(self, database: Database, config: MonitorConfig | None = None) -> None:
        self._database = database
        self._config = config or MonitorConfig()
        self._task: asyncio.Task[None] | None = None
        self._checks = 0
        self._failures = 0
        self._utilization_warnings = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def failures(self) -> int:
        return self._failures

    @property
    def utilization_warnings(self) -> int:
        return self._utilization_warnings

    async def start(self) -> None:
        """Start the monitoring loop."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._monitor_loop())

    async def stop(self) -> None:
        """Stop the monitoring loop."""
        task, self._task = self._task, None
        if task and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def check_once(self) -> bool:
        """Run a single monitoring tick.

        Returns:
            ``True`` when the pool was healthy or has been recreated
            successfully, ``False`` when recreation failed.
        """
        self._checks += 1
        stats = self._database.get_pool_stats()
        if stats.utilization >= self._config.warning_threshold:
            self._utilization_warnings += 1
            logger.warning(
                f"Database pool nearing capacity: {stats.utilization:.0%} "
                f"({stats.size - stats.idle_size}/{stats.max_size} in use)"
            )

        if await self._database.probe(timeout=self._config.probe_timeout):
            return True

        self._failures += 1
        logger.error("Pool health check failed, attempting recovery...")
        return await self._database.recreate()

    async def _monitor_loop(self) -> None:
        """Background task running :meth:`check_once` every interval."""
        while True:
            try:
                await asyncio.sleep(self._config.interval_seconds)
                await self.check_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in pool monitor loop: {e}")
