from scheduler.db.core import close_pool, init_pool
from scheduler.db.keys import RecordKey, RecordKind
from scheduler.db.postgres import PostgresEventStore
from scheduler.db.redis_store import RedisEventStore
from scheduler.db.store import EventStore

__all__ = [
    "EventStore",
    "PostgresEventStore",
    "RecordKey",
    "RecordKind",
    "RedisEventStore",
    "close_pool",
    "init_pool",
]
