"""Application startup and shutdown.

Builds the configured event store and publishes it on ``scheduler.state``
for the request dependencies to pick up.
"""

import logging
from dataclasses import dataclass

import redis.asyncio as redis
from redis.asyncio import BlockingConnectionPool as RedisConnectionPool

from scheduler import db, state
from scheduler.config import get_settings
from scheduler.db.store import EventStore

logger = logging.getLogger(__name__)


@dataclass
class LifespanResources:
    """Container for resources initialized during lifespan."""

    store: EventStore | None = None
    redis_client: redis.Redis | None = None
    db_enabled: bool = False


async def init_redis() -> redis.Redis:
    """Initialize Redis connection with connection pool.

    Returns:
        Configured Redis client returning ``str`` values.
    """
    settings = get_settings().redis
    redis_pool = RedisConnectionPool(
        host=settings.host,
        port=settings.port,
        db=settings.db,
        password=settings.password if settings.password else None,
        max_connections=settings.max_connections,
        timeout=settings.pool_timeout_sec,
        socket_timeout=settings.socket_timeout,
        decode_responses=True,
    )
    candidate_client = redis.Redis(connection_pool=redis_pool, decode_responses=True)
    if hasattr(candidate_client, "__await__"):
        return await candidate_client
    return candidate_client


async def setup_resources() -> LifespanResources:
    """Create the store selected by ``STORE_BACKEND``."""
    settings = get_settings()
    resources = LifespanResources()

    if settings.store.backend == "redis":
        resources.redis_client = await init_redis()
        resources.store = db.RedisEventStore(
            resources.redis_client, key_prefix=settings.redis.key_prefix
        )
    else:
        await db.init_pool()
        resources.db_enabled = True
        resources.store = db.PostgresEventStore()
    logger.info("Event store ready (backend=%s)", resources.store.backend)

    state.store = resources.store
    state.redis_client = resources.redis_client
    return resources


async def cleanup_resources(resources: LifespanResources) -> None:
    """Clean up all resources on shutdown."""
    if resources.store is not None:
        try:
            await resources.store.close()
        except Exception as e:
            logger.warning("Error closing event store: %s", e)

    if resources.db_enabled:
        try:
            await db.close_pool()
        except Exception as e:
            logger.warning("Error closing database pool: %s", e)

    state.store = None
    state.redis_client = None
