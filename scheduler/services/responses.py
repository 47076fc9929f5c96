"""Vote submission and summary workflows."""

import logging
import uuid
from collections.abc import Mapping
from datetime import UTC, datetime

from scheduler.aggregation import count_respondents, summarize
from scheduler.db.store import EventStore
from scheduler.errors import BadRequestError, ConflictError, NotFoundError
from scheduler.models import (
    Availability,
    Event,
    EventStatus,
    EventSummary,
    Respondent,
    Response,
    Timeframe,
)
from scheduler.services.events import load_event

logger = logging.getLogger("scheduler.responses")


def _require_open(event: Event) -> None:
    if event.status is not EventStatus.ACTIVE:
        raise ConflictError(
            detail=f"Event is {event.status.value} and no longer accepts responses",
            event_id=event.event_id,
            status=event.status.value,
        )


def _check_timeframes(timeframes: list[Timeframe], votes: Mapping[str, Availability]) -> None:
    known = {tf.timeframe_id for tf in timeframes}
    unknown = sorted(set(votes) - known)
    if unknown:
        raise BadRequestError(
            detail=f"Unknown timeframe id: {unknown[0]}",
            timeframe_ids=unknown,
        )


def _build_responses(
    event_id: str,
    respondent_id: str,
    respondent_name: str,
    votes: Mapping[str, Availability],
    now: datetime,
) -> list[Response]:
    return [
        Response(
            event_id=event_id,
            respondent_id=respondent_id,
            respondent_name=respondent_name,
            timeframe_id=timeframe_id,
            availability=Availability(availability),
            responded_at=now,
        )
        for timeframe_id, availability in votes.items()
    ]


async def _validated_event(
    store: EventStore, event_id: str, votes: Mapping[str, Availability]
) -> Event:
    # The whole submission is rejected if any vote is bad; nothing is written.
    if not votes:
        raise BadRequestError(detail="At least one response is required")
    event = await load_event(store, event_id)
    _require_open(event)
    _check_timeframes(await store.list_timeframes(event_id), votes)
    return event


async def submit_responses(
    store: EventStore,
    event_id: str,
    *,
    respondent_name: str,
    votes: Mapping[str, Availability],
    respondent_email: str | None = None,
) -> str:
    """Record a first submission, returning the new respondent's id."""
    await _validated_event(store, event_id, votes)
    now = datetime.now(UTC)
    respondent = Respondent(
        respondent_id=str(uuid.uuid4()),
        event_id=event_id,
        name=respondent_name,
        email=respondent_email,
        first_responded_at=now,
    )
    responses = _build_responses(event_id, respondent.respondent_id, respondent_name, votes, now)
    await store.save_responses(event_id, responses, respondent=respondent)
    logger.info(
        "New respondent %s on event %s with %d responses",
        respondent.respondent_id,
        event_id,
        len(responses),
    )
    return respondent.respondent_id


async def update_responses(
    store: EventStore,
    event_id: str,
    respondent_id: str,
    *,
    respondent_name: str,
    votes: Mapping[str, Availability],
) -> None:
    """Overwrite an existing respondent's votes for the given timeframes.

    Votes for timeframes not mentioned are left as they were, and the
    respondent record itself is never modified.
    """
    await _validated_event(store, event_id, votes)
    if await store.get_respondent(event_id, respondent_id) is None:
        logger.warning("Respondent %s not found on event %s", respondent_id, event_id)
        raise NotFoundError(
            detail="Respondent not found", event_id=event_id, respondent_id=respondent_id
        )
    responses = _build_responses(
        event_id, respondent_id, respondent_name, votes, datetime.now(UTC)
    )
    await store.save_responses(event_id, responses)
    logger.info(
        "Updated %d responses for respondent %s on event %s",
        len(responses),
        respondent_id,
        event_id,
    )


async def get_respondent_responses(
    store: EventStore, event_id: str, respondent_id: str
) -> list[Response]:
    await load_event(store, event_id)
    if await store.get_respondent(event_id, respondent_id) is None:
        raise NotFoundError(
            detail="Respondent not found", event_id=event_id, respondent_id=respondent_id
        )
    return await store.list_responses(event_id, respondent_id)


async def get_event_summary(store: EventStore, event_id: str) -> EventSummary:
    """Rank an event's timeframes from the votes currently stored."""
    event = await load_event(store, event_id)
    timeframes = await store.list_timeframes(event_id)
    respondents = await store.list_respondents(event_id)
    responses = await store.list_responses(event_id)
    return EventSummary(
        event=event,
        timeframes=timeframes,
        total_respondents=count_respondents(respondents, responses),
        timeframe_summaries=summarize(timeframes, responses, respondents),
    )
