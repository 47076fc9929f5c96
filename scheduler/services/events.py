"""Event creation and lookup workflows."""

import logging
import uuid
from datetime import UTC, datetime, timedelta

from scheduler.config import SchedulingSettings, get_settings
from scheduler.db.store import EventStore
from scheduler.errors import BadRequestError, NotFoundError
from scheduler.models import Event, EventDetails, EventStatus, TimeframeType
from scheduler.share_code import allocate_share_code, is_valid_share_code, normalize_share_code
from scheduler.timeframes import generate_timeframes, resolve_policy

logger = logging.getLogger("scheduler.events")


def effective_status(event: Event, now: datetime | None = None) -> EventStatus:
    """Stored status, except an active event past ``expires_at`` reads as expired."""
    if event.status is EventStatus.ACTIVE and event.expires_at is not None:
        if (now or datetime.now(UTC)) >= event.expires_at:
            return EventStatus.EXPIRED
    return event.status


def _with_effective_status(event: Event) -> Event:
    status = effective_status(event)
    if status is event.status:
        return event
    return event.model_copy(update={"status": status})


async def load_event(store: EventStore, event_id: str) -> Event:
    event = await store.get_event(event_id)
    if event is None:
        logger.warning("Event not found: %s", event_id)
        raise NotFoundError(detail="Event not found", event_id=event_id)
    return _with_effective_status(event)


async def create_event(
    store: EventStore,
    *,
    title: str,
    creator_name: str,
    start_date: datetime,
    end_date: datetime,
    timeframe_type: TimeframeType | str,
    description: str | None = None,
    creator_email: str | None = None,
    settings: SchedulingSettings | None = None,
) -> EventDetails:
    """Create an event with a fresh share code and its generated timeframes.

    Raises:
        BadRequestError: If the range is empty, reversed or too long.
        UnsupportedPolicyError: If ``timeframe_type`` is unknown.
        AllocationExhaustedError: If no free share code could be drawn.
    """
    settings = settings or get_settings().scheduling
    policy = resolve_policy(timeframe_type)
    # Ranges are naive wall-clock dates; an offset, if any, is dropped.
    start_date = start_date.replace(tzinfo=None)
    end_date = end_date.replace(tzinfo=None)
    if end_date <= start_date:
        raise BadRequestError(detail="End date must be after start date")
    if (end_date - start_date).days > settings.max_range_days:
        raise BadRequestError(
            detail=f"Date range may span at most {settings.max_range_days} days",
            max_range_days=settings.max_range_days,
        )

    event_id = str(uuid.uuid4())
    share_code = await allocate_share_code(store.share_code_exists)
    now = datetime.now(UTC)
    event = Event(
        event_id=event_id,
        title=title,
        description=description,
        creator_name=creator_name,
        creator_email=creator_email,
        start_date=start_date,
        end_date=end_date,
        timeframe_type=policy,
        share_code=share_code,
        created_at=now,
        expires_at=now + timedelta(days=settings.event_ttl_days) if settings.event_ttl_days > 0 else None,
        status=EventStatus.ACTIVE,
    )
    timeframes = generate_timeframes(event_id, start_date, end_date, policy)
    await store.create_event(event, timeframes)
    logger.info(
        "Created event id=%s share_code=%s type=%s timeframes=%d",
        event_id,
        share_code,
        policy.value,
        len(timeframes),
    )
    return EventDetails(event=event, timeframes=timeframes)


async def get_event(store: EventStore, event_id: str) -> EventDetails:
    event = await load_event(store, event_id)
    return EventDetails(event=event, timeframes=await store.list_timeframes(event_id))


async def get_event_by_share_code(store: EventStore, share_code: str) -> EventDetails:
    code = normalize_share_code(share_code)
    if not is_valid_share_code(code):
        raise BadRequestError(detail="Invalid share code", share_code=share_code)
    event_id = await store.get_event_id_by_share_code(code)
    if event_id is None:
        logger.warning("No event for share code %s", code)
        raise NotFoundError(detail="Event not found", share_code=code)
    return await get_event(store, event_id)


async def close_event(store: EventStore, event_id: str) -> Event:
    event = await store.update_event_status(event_id, EventStatus.CLOSED)
    if event is None:
        logger.warning("Event not found: %s", event_id)
        raise NotFoundError(detail="Event not found", event_id=event_id)
    logger.info("Closed event %s", event_id)
    return event
