from typing import Optional

import redis.asyncio as redis

from scheduler.db.store import EventStore

# Global runtime state initialized in lifespan.setup_resources
store: Optional[EventStore] = None
redis_client: Optional[redis.Redis] = None
