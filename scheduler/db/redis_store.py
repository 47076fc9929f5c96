"""Redis event store.

Layout, with ``prefix`` from ``REDIS_KEY_PREFIX``:

    {prefix}:event:{event_id}   hash, field = RecordKey.field, value = JSON record
    {prefix}:code:{share_code}  string, the event id owning the code

An event and its timeframes are written with one HSET. A submission (the
respondent plus its responses) goes through a MULTI/EXEC pipeline. Keeping
an event's records in one hash lets prefix scans run as ``HSCAN MATCH``.

Each stored response carries a ``seq`` drawn from the event's ``sequence``
counter on first write and kept on every overwrite, so responses list in
first-insert order like the Postgres backend.
"""

import json
import logging

import redis.asyncio as redis

from scheduler.db.keys import SEPARATOR, RecordKey
from scheduler.db.store import EventStore
from scheduler.errors import ConflictError
from scheduler.models import Event, EventStatus, Respondent, Response, Timeframe

logger = logging.getLogger(__name__)

# Hash field holding the per-event response counter; never matches a record scan.
SEQUENCE_FIELD = "sequence"


def _dump_response(response: Response, seq: int) -> str:
    return json.dumps({**response.model_dump(mode="json"), "seq": seq})


def _load_response(raw: str) -> tuple[int, Response]:
    data = json.loads(raw)
    return data.pop("seq"), Response.model_validate(data)


class RedisEventStore(EventStore):
    backend = "redis"

    def __init__(self, client: redis.Redis, key_prefix: str = "sched") -> None:
        self.client = client
        self.key_prefix = key_prefix

    def event_key(self, event_id: str) -> str:
        return f"{self.key_prefix}:event:{event_id}"

    def code_key(self, share_code: str) -> str:
        return f"{self.key_prefix}:code:{share_code}"

    async def _get(self, key: RecordKey) -> str | None:
        return await self.client.hget(self.event_key(key.event_id), key.field)

    async def _scan(self, prefix: RecordKey) -> list[str]:
        values = []
        async for field, value in self.client.hscan_iter(
            self.event_key(prefix.event_id), match=prefix.match_pattern()
        ):
            if RecordKey.from_field(prefix.event_id, field).has_prefix(prefix):
                values.append(value)
        return values

    async def ping(self) -> bool:
        return bool(await self.client.ping())

    async def share_code_exists(self, share_code: str) -> bool:
        return bool(await self.client.exists(self.code_key(share_code)))

    async def create_event(self, event: Event, timeframes: list[Timeframe]) -> None:
        claimed = await self.client.set(self.code_key(event.share_code), event.event_id, nx=True)
        if not claimed:
            raise ConflictError(detail="Share code already in use", share_code=event.share_code)

        records = {RecordKey.event(event.event_id).field: event.model_dump_json()}
        for tf in timeframes:
            records[RecordKey.timeframe(event.event_id, tf.timeframe_id).field] = tf.model_dump_json()
        try:
            await self.client.hset(self.event_key(event.event_id), mapping=records)
        except Exception:
            logger.exception("Failed to write event %s, releasing share code", event.event_id)
            await self.client.delete(self.code_key(event.share_code))
            raise

    async def get_event(self, event_id: str) -> Event | None:
        raw = await self._get(RecordKey.event(event_id))
        return Event.model_validate_json(raw) if raw else None

    async def get_event_id_by_share_code(self, share_code: str) -> str | None:
        return await self.client.get(self.code_key(share_code))

    async def update_event_status(self, event_id: str, status: EventStatus) -> Event | None:
        event = await self.get_event(event_id)
        if event is None:
            return None
        updated = event.model_copy(update={"status": status})
        await self.client.hset(
            self.event_key(event_id), RecordKey.event(event_id).field, updated.model_dump_json()
        )
        return updated

    async def list_timeframes(self, event_id: str) -> list[Timeframe]:
        timeframes = [
            Timeframe.model_validate_json(raw)
            for raw in await self._scan(RecordKey.timeframe(event_id))
        ]
        return sorted(timeframes, key=lambda tf: tf.start_date)

    async def get_respondent(self, event_id: str, respondent_id: str) -> Respondent | None:
        # Ids holding the field separator can never have been stored.
        if SEPARATOR in respondent_id:
            return None
        raw = await self._get(RecordKey.respondent(event_id, respondent_id))
        return Respondent.model_validate_json(raw) if raw else None

    async def list_respondents(self, event_id: str) -> list[Respondent]:
        respondents = [
            Respondent.model_validate_json(raw)
            for raw in await self._scan(RecordKey.respondent(event_id))
        ]
        return sorted(respondents, key=lambda r: (r.first_responded_at, r.respondent_id))

    async def list_responses(
        self, event_id: str, respondent_id: str | None = None
    ) -> list[Response]:
        if respondent_id is not None and SEPARATOR in respondent_id:
            return []
        raws = await self._scan(RecordKey.response(event_id, respondent_id))
        ordered = sorted((_load_response(raw) for raw in raws), key=lambda item: item[0])
        return [response for _, response in ordered]

    async def _sequence_numbers(self, key: str, fields: list[str]) -> list[int]:
        """Keep the seq of fields already stored, draw a new one for the rest."""
        existing = await self.client.hmget(key, fields) if fields else []
        numbers = []
        for raw in existing:
            if raw:
                numbers.append(json.loads(raw)["seq"])
            else:
                numbers.append(await self.client.hincrby(key, SEQUENCE_FIELD, 1))
        return numbers

    async def save_responses(
        self,
        event_id: str,
        responses: list[Response],
        respondent: Respondent | None = None,
    ) -> None:
        key = self.event_key(event_id)
        fields = [
            RecordKey.response(event_id, r.respondent_id, r.timeframe_id).field for r in responses
        ]
        numbers = await self._sequence_numbers(key, fields)
        records = {
            field: _dump_response(response, seq)
            for field, response, seq in zip(fields, responses, numbers)
        }
        async with self.client.pipeline(transaction=True) as pipe:
            if respondent is not None:
                pipe.hsetnx(
                    key,
                    RecordKey.respondent(event_id, respondent.respondent_id).field,
                    respondent.model_dump_json(),
                )
            if records:
                pipe.hset(key, mapping=records)
            await pipe.execute()

    async def close(self) -> None:
        await self.client.aclose()
