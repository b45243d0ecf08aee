# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Database connection management with asyncpg and connection pooling."""

import contextlib
import time
from collections.abc import AsyncIterator
from typing import Any

import asyncpg
from beartype import beartype

from .config import Settings, get_settings
from .logging_utils import get_logger

logger = get_logger(__name__)

# Queries slower than this are logged at WARNING
_SLOW_QUERY_MS = 250.0


class Database:
    """asyncpg pool wrapper used by the PostgreSQL credential store and ledger."""

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize database manager; the pool is created by :meth:`connect`."""
        self._settings = settings or get_settings()
        self._pool: asyncpg.Pool | None = None

    @beartype
    async def connect(self) -> None:
        """Create the connection pool."""
        if self._pool is not None:
            return

        self._pool = await asyncpg.create_pool(
            self._settings.database_url,
            min_size=self._settings.database_pool_min,
            max_size=self._settings.database_pool_max,
            command_timeout=self._settings.database_command_timeout,
        )
        logger.info(
            "Database pool ready (min=%d, max=%d)",
            self._settings.database_pool_min,
            self._settings.database_pool_max,
        )

    @beartype
    async def disconnect(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            await self._pool.close()
            logger.info("Database pool closed")
        self._pool = None

    @contextlib.asynccontextmanager
    @beartype
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a pooled connection."""
        if self._pool is None:
            raise RuntimeError("Database not connected")

        async with self._pool.acquire() as conn:
            yield conn

    @contextlib.asynccontextmanager
    @beartype
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """Create a database transaction context.

        Every statement issued on the yielded connection commits or rolls back
        together when the block exits.
        """
        async with self.acquire() as conn:
            async with conn.transaction():
                yield conn

    @beartype
    async def execute(self, query: str, *args: Any) -> str:
        """Execute a query without returning results."""
        async with self.acquire() as conn:
            start = time.perf_counter()
            status = await conn.execute(query, *args)
            self._log_if_slow(query, start)
            return status

    @beartype
    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        """Execute a query and fetch all results."""
        async with self.acquire() as conn:
            start = time.perf_counter()
            rows = await conn.fetch(query, *args)
            self._log_if_slow(query, start)
            return rows

    @beartype
    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        """Execute a query and fetch a single row."""
        async with self.acquire() as conn:
            start = time.perf_counter()
            row = await conn.fetchrow(query, *args)
            self._log_if_slow(query, start)
            return row

    @beartype
    async def fetchval(self, query: str, *args: Any) -> Any:
        """Execute a query and fetch a single value."""
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args)

    @beartype
    async def health_check(self) -> bool:
        """Return True when a trivial query round-trips."""
        if self._pool is None:
            return False
        try:
            return await self.fetchval("SELECT 1") == 1
        except (asyncpg.PostgresError, OSError) as e:
            logger.warning("Database health check failed: %s", e)
            return False

    @property
    def is_connected(self) -> bool:
        """Check if database is connected."""
        return self._pool is not None

    def _log_if_slow(self, query: str, start: float) -> None:
        elapsed_ms = (time.perf_counter() - start) * 1000
        if elapsed_ms > _SLOW_QUERY_MS:
            logger.warning(
                "Slow query (%.1f ms): %s", elapsed_ms, " ".join(query.split())[:120]
            )

