"""Unit tests for the pool monitor."""

import asyncio

import pytest
from trivia_fakes import FakePoolFactory

from trivia_api.core.database import Database
from trivia_api.core.pool_monitor import MonitorConfig, PoolMonitor


@pytest.fixture
def monitor(database: Database) -> PoolMonitor:
    return PoolMonitor(
        database,
        MonitorConfig(interval_seconds=0.01, warning_threshold=0.8, probe_timeout=1.0),
    )


class TestPoolMonitor:
    """Test monitoring ticks and recovery."""

    @pytest.mark.asyncio
    async def test_healthy_tick(
        self, monitor: PoolMonitor, pool_factory: FakePoolFactory
    ) -> None:
        """Test a healthy pool is left alone."""
        assert await monitor.check_once() is True

        assert monitor.failures == 0
        assert len(pool_factory.pools) == 1

    @pytest.mark.asyncio
    async def test_high_utilization_warns(
        self, monitor: PoolMonitor, pool_factory: FakePoolFactory, caplog
    ) -> None:
        """Test utilization at the threshold logs a warning."""
        pool_factory.current.in_use = 4

        with caplog.at_level("WARNING", logger="trivia_api.core.pool_monitor"):
            await monitor.check_once()

        assert monitor.utilization_warnings == 1
        assert "nearing capacity" in caplog.text

    @pytest.mark.asyncio
    async def test_low_utilization_does_not_warn(self, monitor: PoolMonitor) -> None:
        """Test no warning below the threshold."""
        await monitor.check_once()

        assert monitor.utilization_warnings == 0

    @pytest.mark.asyncio
    async def test_failed_probe_recreates_pool(
        self,
        monitor: PoolMonitor,
        database: Database,
        pool_factory: FakePoolFactory,
    ) -> None:
        """Test a failed liveness probe triggers pool recreation."""
        broken = pool_factory.current
        broken.acquire_error = ConnectionResetError("reset")

        assert await monitor.check_once() is True

        assert monitor.failures == 1
        assert broken.closed
        assert pool_factory.current is not broken
        assert database.get_pool_stats().recreations == 1
        assert await database.probe(timeout=1.0) is True

    @pytest.mark.asyncio
    async def test_failed_recreation_is_reported(
        self,
        monitor: PoolMonitor,
        database: Database,
        pool_factory: FakePoolFactory,
    ) -> None:
        """Test a recreation that cannot build a pool returns False."""
        pool_factory.current.acquire_error = ConnectionResetError("reset")
        pool_factory.error = OSError("still down")

        assert await monitor.check_once() is False
        assert not database.is_connected

    @pytest.mark.asyncio
    async def test_background_loop_recovers_pool(
        self, monitor: PoolMonitor, pool_factory: FakePoolFactory
    ) -> None:
        """Test the timer-driven loop runs ticks until stopped."""
        pool_factory.current.acquire_error = ConnectionResetError("reset")

        await monitor.start()
        assert monitor.is_running
        try:
            await asyncio.sleep(0.1)
        finally:
            await monitor.stop()

        assert not monitor.is_running
        assert monitor.failures == 1
        assert len(pool_factory.pools) == 2

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, monitor: PoolMonitor) -> None:
        """Test starting twice keeps a single loop."""
        await monitor.start()
        await monitor.start()
        await monitor.stop()

        assert not monitor.is_running
