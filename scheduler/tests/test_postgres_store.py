from contextlib import asynccontextmanager
from datetime import UTC, datetime

import pytest
from psycopg import errors as pg_errors

from scheduler.db import postgres
from scheduler.db.postgres import PostgresEventStore
from scheduler.errors import ConflictError
from scheduler.models import (
    Availability,
    Event,
    EventStatus,
    Respondent,
    Response,
    Timeframe,
    TimeframeType,
)

CREATED = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


class MockAsyncCursor:

    def __init__(self, conn=None, rows=None):
        self.conn = conn
        self.rows = rows or []

    async def fetchone(self):
        if self.rows:
            return self.rows[0]
        return None

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for row in self.rows:
            yield row

    async def executemany(self, sql, params_seq):
        self.conn.calls.append((sql, list(params_seq)))

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        return False


class MockTransaction:

    def __init__(self, conn):
        self.conn = conn

    async def __aenter__(self):
        self.conn.transactions += 1
        return self

    async def __aexit__(self, *args):
        return False


class MockAsyncConnection:

    def __init__(self, cursor_results=None, error=None):
        self.cursor_results = list(cursor_results or [])
        self.error = error
        self.calls = []
        self.transactions = 0

    async def execute(self, sql, params=None):
        self.calls.append((sql, params))
        if self.error is not None:
            raise self.error
        rows = self.cursor_results.pop(0) if self.cursor_results else []
        return MockAsyncCursor(self, rows)

    def cursor(self):
        return MockAsyncCursor(self)

    def transaction(self):
        return MockTransaction(self)


@pytest.fixture
def conn(monkeypatch):
    connection = MockAsyncConnection()

    @asynccontextmanager
    async def fake_get_connection(autocommit=True):
        yield connection

    monkeypatch.setattr(postgres, "_get_connection", fake_get_connection)
    return connection


def event_row(status="active"):
    return (
        "evt-1",
        "Ski trip",
        None,
        "Ann",
        "ann@example.com",
        datetime(2024, 1, 1),
        datetime(2024, 1, 31),
        "weekend",
        "ABC234",
        CREATED,
        None,
        status,
    )


def make_event():
    return Event(
        event_id="evt-1",
        title="Ski trip",
        creator_name="Ann",
        start_date=datetime(2024, 1, 1),
        end_date=datetime(2024, 1, 31),
        timeframe_type=TimeframeType.WEEKEND,
        share_code="ABC234",
        created_at=CREATED,
    )


class TestEvents:
    @pytest.mark.asyncio
    async def test_get_event_maps_row(self, conn):
        conn.cursor_results = [[event_row()]]

        event = await PostgresEventStore().get_event("evt-1")

        assert event.event_id == "evt-1"
        assert event.creator_email == "ann@example.com"
        assert event.timeframe_type is TimeframeType.WEEKEND
        assert event.status is EventStatus.ACTIVE
        assert event.created_at == CREATED
        sql, params = conn.calls[0]
        assert "FROM sched_events WHERE id = %s" in sql
        assert params == ("evt-1",)

    @pytest.mark.asyncio
    async def test_get_event_missing(self, conn):
        assert await PostgresEventStore().get_event("nope") is None

    @pytest.mark.asyncio
    async def test_create_event_writes_event_and_timeframes_in_one_transaction(self, conn):
        timeframes = [
            Timeframe(
                timeframe_id="t1",
                event_id="evt-1",
                start_date=datetime(2024, 1, 6),
                end_date=datetime(2024, 1, 7),
                label="Jan 6-7, 2024",
            ),
            Timeframe(
                timeframe_id="t2",
                event_id="evt-1",
                start_date=datetime(2024, 1, 13),
                end_date=datetime(2024, 1, 14),
                label="Jan 13-14, 2024",
            ),
        ]

        await PostgresEventStore().create_event(make_event(), timeframes)

        assert conn.transactions == 1
        insert_event, insert_timeframes = conn.calls
        assert "INSERT INTO sched_events" in insert_event[0]
        assert insert_event[1][7] == "weekend"
        assert insert_event[1][8] == "ABC234"
        assert "INSERT INTO sched_timeframes" in insert_timeframes[0]
        assert [p[1:3] for p in insert_timeframes[1]] == [("t1", 0), ("t2", 1)]

    @pytest.mark.asyncio
    async def test_create_event_share_code_collision(self, conn):
        conn.error = pg_errors.UniqueViolation("duplicate key value")

        with pytest.raises(ConflictError) as exc_info:
            await PostgresEventStore().create_event(make_event(), [])

        assert exc_info.value.context == {"share_code": "ABC234"}

    @pytest.mark.asyncio
    async def test_share_code_lookup(self, conn):
        conn.cursor_results = [[("evt-1",)], []]
        store = PostgresEventStore()

        assert await store.get_event_id_by_share_code("ABC234") == "evt-1"
        assert await store.get_event_id_by_share_code("ZZZZZZ") is None

    @pytest.mark.asyncio
    async def test_update_event_status(self, conn):
        conn.cursor_results = [[event_row(status="closed")]]

        event = await PostgresEventStore().update_event_status("evt-1", EventStatus.CLOSED)

        assert event.status is EventStatus.CLOSED
        sql, params = conn.calls[0]
        assert sql.startswith("UPDATE sched_events SET status = %s")
        assert params == ("closed", "evt-1")


class TestTimeframes:
    @pytest.mark.asyncio
    async def test_list_timeframes_in_position_order(self, conn):
        conn.cursor_results = [[
            ("t1", "evt-1", datetime(2024, 1, 6), datetime(2024, 1, 7), "Jan 6-7, 2024", 0),
            ("t2", "evt-1", datetime(2024, 1, 13), datetime(2024, 1, 14), "Jan 13-14, 2024", 0),
        ]]

        timeframes = await PostgresEventStore().list_timeframes("evt-1")

        assert [tf.timeframe_id for tf in timeframes] == ["t1", "t2"]
        assert timeframes[1].label == "Jan 13-14, 2024"
        assert "ORDER BY position" in conn.calls[0][0]


class TestResponses:
    @pytest.mark.asyncio
    async def test_save_responses_upserts(self, conn):
        respondent = Respondent(
            respondent_id="r1", event_id="evt-1", name="Ann", first_responded_at=CREATED
        )
        response = Response(
            event_id="evt-1",
            respondent_id="r1",
            respondent_name="Ann",
            timeframe_id="t1",
            availability=Availability.PREFERRED,
            responded_at=CREATED,
        )

        await PostgresEventStore().save_responses("evt-1", [response], respondent=respondent)

        assert conn.transactions == 1
        (respondent_sql, _), (response_sql, rows) = conn.calls
        assert "ON CONFLICT (event_id, id) DO NOTHING" in respondent_sql
        assert "ON CONFLICT (event_id, respondent_id, timeframe_id) DO UPDATE" in response_sql
        assert rows == [("evt-1", "r1", "Ann", "t1", "preferred", CREATED)]

    @pytest.mark.asyncio
    async def test_save_responses_without_respondent(self, conn):
        await PostgresEventStore().save_responses("evt-1", [])

        assert conn.calls == []

    @pytest.mark.asyncio
    async def test_list_responses_filters_by_respondent(self, conn):
        conn.cursor_results = [[("evt-1", "r1", "Ann", "t1", "could_make", CREATED)]]

        (response,) = await PostgresEventStore().list_responses("evt-1", "r1")

        assert response.availability is Availability.COULD_MAKE
        sql, params = conn.calls[0]
        assert "AND respondent_id = %s" in sql
        assert sql.endswith("ORDER BY seq")
        assert params == ("evt-1", "r1")

    @pytest.mark.asyncio
    async def test_list_respondents(self, conn):
        conn.cursor_results = [[("r1", "evt-1", "Ann", None, CREATED)]]

        (respondent,) = await PostgresEventStore().list_respondents("evt-1")

        assert respondent.name == "Ann"
        assert respondent.email is None


class TestStats:
    def test_stats_without_pool(self, monkeypatch):
        monkeypatch.setattr(postgres, "current_pool", lambda: None)

        assert PostgresEventStore().stats() == {"status": "not_initialized"}

    def test_stats_from_pool(self, monkeypatch):
        class FakePool:
            def get_stats(self):
                return {"pool_size": 4, "pool_available": 3, "requests_waiting": 0}

        monkeypatch.setattr(postgres, "current_pool", lambda: FakePool())

        assert PostgresEventStore().stats() == {
            "status": "active",
            "size": 4,
            "available": 3,
            "waiting": 0,
        }
