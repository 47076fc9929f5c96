"""Postgres connection handling for the event store and migrations.

``init_pool`` is called once from the lifespan when ``STORE_BACKEND`` is
``postgres``. Until then (and in one-off scripts) ``_get_connection`` falls
back to a direct connection per call.
"""

import logging
from contextlib import asynccontextmanager

import psycopg
from psycopg_pool import AsyncConnectionPool

from scheduler.config import PostgresSettings, get_settings

logger = logging.getLogger(__name__)

_pool: AsyncConnectionPool | None = None


def _build_pool(settings: PostgresSettings) -> AsyncConnectionPool:
    return AsyncConnectionPool(
        settings.get_dsn(),
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        timeout=settings.pool_timeout,
        max_lifetime=settings.pool_max_lifetime,
        max_idle=settings.pool_max_idle,
        check=AsyncConnectionPool.check_connection,
        open=False,
    )


def current_pool() -> AsyncConnectionPool | None:
    return _pool


async def init_pool() -> None:
    """Open the shared pool and bring the scheduler tables up to date."""
    global _pool
    if _pool is not None:
        return
    settings = get_settings().postgres
    pool = _build_pool(settings)
    await pool.open()
    _pool = pool
    logger.info(
        "Postgres pool open for %s@%s/%s (size %d-%d)",
        settings.user,
        settings.host,
        settings.database,
        settings.pool_min_size,
        settings.pool_max_size,
    )

    # schema imports migrations, which import this module
    from scheduler.db.schema import _ensure_schema

    await _ensure_schema()


async def close_pool() -> None:
    global _pool
    pool, _pool = _pool, None
    if pool is not None:
        await pool.close()
        logger.info("Postgres pool closed")


@asynccontextmanager
async def _get_connection(autocommit: bool = True):
    """Yield a connection from the pool, or a fresh one when no pool is open."""
    if _pool is None:
        dsn = get_settings().postgres.get_dsn()
        async with await psycopg.AsyncConnection.connect(dsn, autocommit=autocommit) as conn:
            yield conn
        return
    async with _pool.connection() as conn:
        await conn.set_autocommit(autocommit)
        yield conn
