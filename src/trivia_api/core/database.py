# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Database connection management with asyncpg and a recoverable pool.

:class:`Database` owns the current pool reference. Callers never hold the
pool itself; they borrow connections through :meth:`Database.acquire`, so the
pool can be replaced wholesale by :meth:`Database.recreate` without any
caller observing a half-built pool.
"""

import asyncio
import contextlib
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

import asyncpg
from attrs import field, frozen
from beartype import beartype

from .config import Settings, get_settings
from .errors import FatalConfigError, TransientInfraError
from .result_types import Err, Ok

logger = logging.getLogger(__name__)

PoolFactory = Callable[..., Awaitable[Any]]


@frozen
class PoolConfig:
    """Immutable pool configuration."""

    host: str = field()
    port: int = field()
    user: str = field()
    password: str = field(repr=False)
    database: str = field()
    min_size: int = field(default=5)
    max_size: int = field(default=20)
    connect_timeout: float = field(default=5.0)
    command_timeout: float = field(default=15.0)
    statement_timeout: float = field(default=10.0)
    max_inactive_connection_lifetime: float = field(default=30.0)
    server_settings: dict[str, str] = field(
        factory=lambda: {"application_name": "trivia_api"}
    )

    @classmethod
    @beartype
    def from_settings(cls, settings: Settings) -> "PoolConfig":
        return cls(
            host=settings.postgres_host,
            port=settings.postgres_port,
            user=settings.postgres_user,
            password=settings.postgres_password,
            database=settings.postgres_name,
            min_size=settings.postgres_min_connections,
            max_size=settings.postgres_max_connections,
            connect_timeout=settings.postgres_connection_timeout,
            command_timeout=settings.postgres_query_timeout,
            statement_timeout=settings.postgres_statement_timeout,
            max_inactive_connection_lifetime=settings.postgres_idle_timeout,
        )

    def effective_server_settings(self) -> dict[str, str]:
        """Server settings sent on connect, including the statement timeout."""
        return {
            **self.server_settings,
            "statement_timeout": str(int(self.statement_timeout * 1000)),
        }


@frozen
class PoolMetrics:
    """Immutable pool metrics snapshot."""

    size: int = field()
    idle_size: int = field()
    min_size: int = field()
    max_size: int = field()
    connections_active: int = field()
    utilization: float = field()
    queries_total: int = field()
    connection_errors: int = field()
    recreations: int = field()


@beartype
async def check_tcp_connection(host: str, port: int, timeout: float = 5.0) -> bool:
    """Check raw TCP reachability of ``host:port``.

    Runs before the driver handshake so a wrong host or port fails fast with
    a clear message instead of hanging inside the driver's connect logic.
    """
    try:
        _reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=timeout
        )
    except (asyncio.TimeoutError, TimeoutError):
        logger.error(f"TCP connection to {host}:{port} timed out after {timeout}s")
        return False
    except OSError as e:
        logger.error(f"TCP connection to {host}:{port} failed: {e}")
        return False

    writer.close()
    with contextlib.suppress(OSError):
        await writer.wait_closed()
    logger.info(f"TCP connection to {host}:{port} successful")
    return True


class Database:
    """Connection pool handle with liveness checks and wholesale recreation."""

    def __init__(
        self,
        config: PoolConfig | None = None,
        *,
        pool_factory: PoolFactory | None = None,
        check_reachability: bool = True,
    ) -> None:
        self._config = config or PoolConfig.from_settings(get_settings())
        self._pool_factory = pool_factory or asyncpg.create_pool
        self._check_reachability = check_reachability
        self._pool: Any | None = None
        self._recreate_lock = asyncio.Lock()

        self._metrics = {
            "connections_active": 0,
            "queries_total": 0,
            "connection_errors": 0,
            "recreations": 0,
        }

    @property
    def config(self) -> PoolConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        """Check if a pool is currently installed."""
        return self._pool is not None

    async def _init_connection(self, conn: asyncpg.Connection) -> None:
        """Decode json/jsonb columns (question options) into Python objects."""
        for type_name in ("json", "jsonb"):
            await conn.set_type_codec(
                type_name,
                encoder=json.dumps,
                decoder=json.loads,
                schema="pg_catalog",
            )

    async def _create_pool(self) -> Any:
        """Build a pool and confirm it answers a query.

        Raises:
            FatalConfigError: host unreachable, handshake failed or the
                startup query failed.
        """
        config = self._config
        logger.info(
            f"Initializing pool: host={config.host} port={config.port} "
            f"database={config.database} user={config.user} "
            f"min={config.min_size} max={config.max_size}"
        )

        if self._check_reachability:
            reachable = await check_tcp_connection(
                config.host, config.port, timeout=config.connect_timeout
            )
            if not reachable:
                raise FatalConfigError(
                    f"Database host {config.host}:{config.port} is not reachable; "
                    "check POSTGRES_HOST and POSTGRES_PORT"
                )

        try:
            pool = await self._pool_factory(
                host=config.host,
                port=config.port,
                user=config.user,
                password=config.password,
                database=config.database,
                min_size=config.min_size,
                max_size=config.max_size,
                timeout=config.connect_timeout,
                command_timeout=config.command_timeout,
                max_inactive_connection_lifetime=config.max_inactive_connection_lifetime,
                server_settings=config.effective_server_settings(),
                init=self._init_connection,
            )
        except (OSError, asyncio.TimeoutError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
            raise FatalConfigError(f"Failed to create connection pool: {e}") from e

        try:
            async with pool.acquire(timeout=config.connect_timeout) as conn:
                await conn.fetchval("SELECT NOW()")
        except Exception as e:
            await self._close_pool(pool)
            raise FatalConfigError(f"Database did not answer startup query: {e}") from e

        logger.info("Successfully connected to database")
        return pool

    @staticmethod
    async def _close_pool(pool: Any, timeout: float = 10.0) -> None:
        """Close ``pool``, terminating it if a graceful close fails."""
        try:
            await asyncio.wait_for(pool.close(), timeout=timeout)
        except Exception as e:
            logger.error(f"Error closing pool, terminating: {e}")
            with contextlib.suppress(Exception):
                pool.terminate()

    async def connect(self) -> None:
        """Create the pool if none is installed."""
        if self._pool is not None:
            return
        async with self._recreate_lock:
            if self._pool is None:
                self._pool = await self._create_pool()

    async def disconnect(self) -> None:
        """Close the pool."""
        async with self._recreate_lock:
            pool, self._pool = self._pool, None
            if pool is not None:
                logger.info("Cleaning up connection pool")
                await self._close_pool(pool)

    async def recreate(self) -> bool:
        """Replace the current pool with a freshly built one.

        The old pool is detached before it is closed, so concurrent acquires
        fail fast with a retryable error instead of borrowing from a closing
        pool. Returns ``False`` when the new pool cannot be built; the
        handle is then left without a pool and the next attempt starts over.
        """
        async with self._recreate_lock:
            logger.warning("Attempting to reinitialize pool...")
            old, self._pool = self._pool, None
            if old is not None:
                await self._close_pool(old)

            try:
                self._pool = await self._create_pool()
            except FatalConfigError as e:
                logger.error(f"Pool recreation failed: {e}")
                return False

            self._metrics["recreations"] += 1
            logger.info("Pool recreated successfully")
            return True

    @contextlib.asynccontextmanager
    async def acquire(
        self, *, timeout: float | None = None
    ) -> AsyncIterator[asyncpg.Connection]:
        """Borrow a connection from the current pool.

        Raises:
            TransientInfraError: no pool is installed (startup or recreation
                in progress).
        """
        pool = self._pool
        if pool is None:
            raise TransientInfraError("Database pool is not available")

        timeout = timeout or self._config.connect_timeout
        acquired = False
        try:
            async with pool.acquire(timeout=timeout) as conn:
                acquired = True
                self._metrics["connections_active"] += 1
                try:
                    yield conn
                finally:
                    self._metrics["connections_active"] -= 1
        except Exception:
            # Failures raised by the caller's own queries are not connection errors
            if not acquired:
                self._metrics["connection_errors"] += 1
            raise

    async def fetch(self, query: str, *args: Any) -> list[Any]:
        """Execute a query on a pooled connection and fetch all rows."""
        async with self.acquire() as conn:
            self._metrics["queries_total"] += 1
            return list(await conn.fetch(query, *args))

    async def probe(self, timeout: float = 5.0) -> bool:
        """Liveness probe: acquire, ``SELECT 1``, release within ``timeout``."""

        async def _select_one() -> Any:
            async with self.acquire(timeout=timeout) as conn:
                return await conn.fetchval("SELECT 1")

        try:
            result = await asyncio.wait_for(_select_one(), timeout=timeout)
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return False
        return result == 1

    async def health_check(self, timeout: float = 5.0):
        """Check connectivity, returning ``Ok(True)`` or ``Err(reason)``."""
        if self._pool is None:
            return Err("Database pool not initialized")
        if not await self.probe(timeout=timeout):
            return Err("Database health check failed")
        return Ok(True)

    @beartype
    def get_pool_stats(self) -> PoolMetrics:
        """Get a snapshot of pool utilization and counters."""
        pool = self._pool
        if pool is None:
            size = idle = min_size = 0
            max_size = self._config.max_size
        else:
            size = pool.get_size()
            idle = pool.get_idle_size()
            min_size = pool.get_min_size()
            max_size = pool.get_max_size()

        utilization = (size - idle) / max_size if max_size > 0 else 0.0
        return PoolMetrics(
            size=size,
            idle_size=idle,
            min_size=min_size,
            max_size=max_size,
            connections_active=self._metrics["connections_active"],
            utilization=utilization,
            queries_total=self._metrics["queries_total"],
            connection_errors=self._metrics["connection_errors"],
            recreations=self._metrics["recreations"],
        )
