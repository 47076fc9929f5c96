from datetime import UTC
from typing import Any

from psycopg import errors as pg_errors

from scheduler.db.core import _get_connection, current_pool
from scheduler.db.store import EventStore
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

_EVENT_COLUMNS = (
    "id, title, description, creator_name, creator_email, start_date, end_date, "
    "timeframe_type, share_code, created_at, expires_at, status"
)
_TIMEFRAME_COLUMNS = "id, event_id, start_date, end_date, label, response_count"
_RESPONDENT_COLUMNS = "id, event_id, name, email, first_responded_at"
_RESPONSE_COLUMNS = (
    "event_id, respondent_id, respondent_name, timeframe_id, availability, responded_at"
)


def _utc(value):
    return value.astimezone(UTC) if value is not None else None


def _event_from_row(row: tuple[Any, ...]) -> Event:
    return Event(
        event_id=row[0],
        title=row[1],
        description=row[2],
        creator_name=row[3],
        creator_email=row[4],
        start_date=row[5],
        end_date=row[6],
        timeframe_type=TimeframeType(row[7]),
        share_code=row[8],
        created_at=_utc(row[9]),
        expires_at=_utc(row[10]),
        status=EventStatus(row[11]),
    )


def _timeframe_from_row(row: tuple[Any, ...]) -> Timeframe:
    return Timeframe(
        timeframe_id=row[0],
        event_id=row[1],
        start_date=row[2],
        end_date=row[3],
        label=row[4],
        response_count=row[5],
    )


def _respondent_from_row(row: tuple[Any, ...]) -> Respondent:
    return Respondent(
        respondent_id=row[0],
        event_id=row[1],
        name=row[2],
        email=row[3],
        first_responded_at=_utc(row[4]),
    )


def _response_from_row(row: tuple[Any, ...]) -> Response:
    return Response(
        event_id=row[0],
        respondent_id=row[1],
        respondent_name=row[2],
        timeframe_id=row[3],
        availability=Availability(row[4]),
        responded_at=_utc(row[5]),
    )


class PostgresEventStore(EventStore):
    """Event store backed by the ``sched_*`` tables.

    Connections come from the pool in ``scheduler.db.core`` when it has been
    initialised, otherwise a connection is opened per call.
    """

    backend = "postgres"

    def stats(self) -> dict[str, object] | None:
        pool = current_pool()
        if pool is None:
            return {"status": "not_initialized"}
        figures = pool.get_stats()
        return {
            "status": "active",
            "size": figures.get("pool_size", 0),
            "available": figures.get("pool_available", 0),
            "waiting": figures.get("requests_waiting", 0),
        }

    async def ping(self) -> bool:
        async with _get_connection() as conn:
            await conn.execute("SELECT 1")
        return True

    async def share_code_exists(self, share_code: str) -> bool:
        async with _get_connection() as conn:
            cur = await conn.execute(
                "SELECT 1 FROM sched_events WHERE share_code = %s", (share_code,)
            )
            return await cur.fetchone() is not None

    async def create_event(self, event: Event, timeframes: list[Timeframe]) -> None:
        async with _get_connection() as conn:
            try:
                async with conn.transaction():
                    await conn.execute(
                        f"""INSERT INTO sched_events ({_EVENT_COLUMNS})
                           VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)""",
                        (
                            event.event_id,
                            event.title,
                            event.description,
                            event.creator_name,
                            event.creator_email,
                            event.start_date,
                            event.end_date,
                            event.timeframe_type.value,
                            event.share_code,
                            event.created_at,
                            event.expires_at,
                            event.status.value,
                        ),
                    )
                    if timeframes:
                        async with conn.cursor() as cur:
                            await cur.executemany(
                                """INSERT INTO sched_timeframes
                                   (event_id, id, position, start_date, end_date, label, response_count)
                                   VALUES (%s, %s, %s, %s, %s, %s, %s)""",
                                [
                                    (
                                        event.event_id,
                                        tf.timeframe_id,
                                        position,
                                        tf.start_date,
                                        tf.end_date,
                                        tf.label,
                                        tf.response_count,
                                    )
                                    for position, tf in enumerate(timeframes)
                                ],
                            )
            except pg_errors.UniqueViolation as e:
                raise ConflictError(
                    detail="Share code already in use", share_code=event.share_code
                ) from e

    async def get_event(self, event_id: str) -> Event | None:
        async with _get_connection() as conn:
            cur = await conn.execute(
                f"SELECT {_EVENT_COLUMNS} FROM sched_events WHERE id = %s", (event_id,)
            )
            row = await cur.fetchone()
            return _event_from_row(row) if row else None

    async def get_event_id_by_share_code(self, share_code: str) -> str | None:
        async with _get_connection() as conn:
            cur = await conn.execute(
                "SELECT id FROM sched_events WHERE share_code = %s", (share_code,)
            )
            row = await cur.fetchone()
            return row[0] if row else None

    async def update_event_status(self, event_id: str, status: EventStatus) -> Event | None:
        async with _get_connection() as conn:
            cur = await conn.execute(
                f"UPDATE sched_events SET status = %s WHERE id = %s RETURNING {_EVENT_COLUMNS}",
                (status.value, event_id),
            )
            row = await cur.fetchone()
            return _event_from_row(row) if row else None

    async def list_timeframes(self, event_id: str) -> list[Timeframe]:
        async with _get_connection() as conn:
            rows = await conn.execute(
                f"SELECT {_TIMEFRAME_COLUMNS} FROM sched_timeframes WHERE event_id = %s ORDER BY position",
                (event_id,),
            )
            return [_timeframe_from_row(row) async for row in rows]

    async def get_respondent(self, event_id: str, respondent_id: str) -> Respondent | None:
        async with _get_connection() as conn:
            cur = await conn.execute(
                f"SELECT {_RESPONDENT_COLUMNS} FROM sched_respondents WHERE event_id = %s AND id = %s",
                (event_id, respondent_id),
            )
            row = await cur.fetchone()
            return _respondent_from_row(row) if row else None

    async def list_respondents(self, event_id: str) -> list[Respondent]:
        async with _get_connection() as conn:
            rows = await conn.execute(
                f"SELECT {_RESPONDENT_COLUMNS} FROM sched_respondents WHERE event_id = %s "
                "ORDER BY first_responded_at, id",
                (event_id,),
            )
            return [_respondent_from_row(row) async for row in rows]

    async def list_responses(
        self, event_id: str, respondent_id: str | None = None
    ) -> list[Response]:
        sql = f"SELECT {_RESPONSE_COLUMNS} FROM sched_responses WHERE event_id = %s"
        params: list[Any] = [event_id]
        if respondent_id is not None:
            sql += " AND respondent_id = %s"
            params.append(respondent_id)
        sql += " ORDER BY seq"
        async with _get_connection() as conn:
            rows = await conn.execute(sql, tuple(params))
            return [_response_from_row(row) async for row in rows]

    async def save_responses(
        self,
        event_id: str,
        responses: list[Response],
        respondent: Respondent | None = None,
    ) -> None:
        async with _get_connection() as conn:
            async with conn.transaction():
                if respondent is not None:
                    await conn.execute(
                        f"""INSERT INTO sched_respondents ({_RESPONDENT_COLUMNS})
                           VALUES (%s, %s, %s, %s, %s)
                           ON CONFLICT (event_id, id) DO NOTHING""",
                        (
                            respondent.respondent_id,
                            event_id,
                            respondent.name,
                            respondent.email,
                            respondent.first_responded_at,
                        ),
                    )
                if responses:
                    async with conn.cursor() as cur:
                        await cur.executemany(
                            f"""INSERT INTO sched_responses ({_RESPONSE_COLUMNS})
                               VALUES (%s, %s, %s, %s, %s, %s)
                               ON CONFLICT (event_id, respondent_id, timeframe_id) DO UPDATE SET
                                   respondent_name = EXCLUDED.respondent_name,
                                   availability = EXCLUDED.availability,
                                   responded_at = EXCLUDED.responded_at""",
                            [
                                (
                                    event_id,
                                    r.respondent_id,
                                    r.respondent_name,
                                    r.timeframe_id,
                                    r.availability.value,
                                    r.responded_at,
                                )
                                for r in responses
                            ],
                        )
