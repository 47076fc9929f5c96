import os
import sys
from datetime import datetime

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

import pytest
import fakeredis
import fakeredis.aioredis
from fastapi.testclient import TestClient

from scheduler import lifespan
from scheduler.config import clear_settings_cache
from scheduler.db import RedisEventStore
from scheduler.models import Timeframe


@pytest.fixture
def redis_server():
    return fakeredis.FakeServer()


@pytest.fixture
def store(redis_server):
    client = fakeredis.aioredis.FakeRedis(server=redis_server, decode_responses=True)
    return RedisEventStore(client, key_prefix="test")


@pytest.fixture
def client(monkeypatch, redis_server):
    def fake_redis_constructor(*_args, **_kwargs):
        return fakeredis.aioredis.FakeRedis(server=redis_server, decode_responses=True)

    monkeypatch.setenv("STORE_BACKEND", "redis")
    monkeypatch.setattr(lifespan.redis, "Redis", fake_redis_constructor)
    clear_settings_cache()

    import scheduler.main as main

    with TestClient(main.app) as c:
        yield c
    clear_settings_cache()


@pytest.fixture
def make_timeframe():
    def _make(timeframe_id, start, end=None, label=None, event_id="evt-1"):
        return Timeframe(
            timeframe_id=timeframe_id,
            event_id=event_id,
            start_date=datetime.fromisoformat(start),
            end_date=datetime.fromisoformat(end or start),
            label=label or timeframe_id,
        )

    return _make
