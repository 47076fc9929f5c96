"""Expansion of an event's date range into candidate timeframes.

Each timeframe type is a policy for cutting ``[start, end]`` into buckets:

- ``weekend``: every Saturday-Sunday pair that fits inside the range
- ``weekday``: every Monday-Friday work week that fits inside the range
- ``all_days``: one bucket per calendar day, inclusive of both ends
- ``specific_dates``: the whole range as a single bucket

Bounds are handled as naive calendar dates at local midnight. Only
``specific_dates`` keeps the time of day it was given. Partial weeks at either
end are dropped, so the weekly policies can legitimately return nothing.
"""

import uuid
from collections.abc import Callable, Iterator
from datetime import date, datetime, time, timedelta, tzinfo

from scheduler.errors import UnsupportedPolicyError
from scheduler.labels import format_day_label, format_range_label, format_span_label
from scheduler.models import Timeframe, TimeframeType

SATURDAY = 5
MONDAY = 0
END_OF_DAY = time(23, 59, 59, 999000)

# (bucket start, bucket end, label)
Bucket = tuple[datetime, datetime, str]


def _new_id() -> str:
    return str(uuid.uuid4())


def _as_day(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def _next_weekday(day: date, weekday: int) -> date:
    return day + timedelta(days=(weekday - day.weekday()) % 7)


def _weekly_buckets(
    first_day: date,
    last_day: date,
    tz: tzinfo | None,
    opening_weekday: int,
    span_days: int,
) -> Iterator[Bucket]:
    current = _next_weekday(first_day, opening_weekday)
    while current <= last_day:
        closing = current + timedelta(days=span_days)
        if closing <= last_day:
            yield (
                datetime.combine(current, time.min, tzinfo=tz),
                datetime.combine(closing, time.min, tzinfo=tz),
                format_span_label(current, closing),
            )
        current += timedelta(days=7)


def weekend_buckets(start: date | datetime, end: date | datetime) -> Iterator[Bucket]:
    return _weekly_buckets(_as_day(start), _as_day(end), getattr(start, "tzinfo", None), SATURDAY, 1)


def weekday_buckets(start: date | datetime, end: date | datetime) -> Iterator[Bucket]:
    return _weekly_buckets(_as_day(start), _as_day(end), getattr(start, "tzinfo", None), MONDAY, 4)


def all_days_buckets(start: date | datetime, end: date | datetime) -> Iterator[Bucket]:
    tz = getattr(start, "tzinfo", None)
    current, last_day = _as_day(start), _as_day(end)
    while current <= last_day:
        yield (
            datetime.combine(current, time.min, tzinfo=tz),
            datetime.combine(current, END_OF_DAY, tzinfo=tz),
            format_day_label(current),
        )
        current += timedelta(days=1)


def specific_dates_buckets(start: date | datetime, end: date | datetime) -> Iterator[Bucket]:
    yield (
        _as_datetime(start),
        _as_datetime(end),
        format_range_label(_as_day(start), _as_day(end)),
    )


_POLICIES: dict[TimeframeType, Callable[[date | datetime, date | datetime], Iterator[Bucket]]] = {
    TimeframeType.WEEKEND: weekend_buckets,
    TimeframeType.WEEKDAY: weekday_buckets,
    TimeframeType.ALL_DAYS: all_days_buckets,
    TimeframeType.SPECIFIC_DATES: specific_dates_buckets,
}


def resolve_policy(policy: TimeframeType | str) -> TimeframeType:
    """Coerce a wire value into a ``TimeframeType``.

    Raises:
        UnsupportedPolicyError: If ``policy`` is not one of the known types.
    """
    try:
        return TimeframeType(policy)
    except ValueError:
        raise UnsupportedPolicyError(
            detail=f"Unsupported timeframe type: {policy}",
            timeframe_type=str(policy),
        ) from None


def generate_timeframes(
    event_id: str,
    start: date | datetime,
    end: date | datetime,
    policy: TimeframeType | str,
    *,
    id_factory: Callable[[], str] = _new_id,
) -> list[Timeframe]:
    """Build the ordered timeframes for an event.

    Args:
        event_id: Owner of the generated timeframes.
        start: First instant of the event's range.
        end: Last instant of the event's range; callers guarantee ``end > start``.
        policy: A ``TimeframeType`` or its wire value.
        id_factory: Produces timeframe ids, random UUIDs by default.

    Returns:
        Chronologically ordered, non-overlapping timeframes with
        ``response_count`` set to 0. May be empty for the weekly policies.

    Raises:
        UnsupportedPolicyError: If ``policy`` is not a known timeframe type.
    """
    buckets = _POLICIES[resolve_policy(policy)](start, end)
    return [
        Timeframe(
            timeframe_id=id_factory(),
            event_id=event_id,
            start_date=bucket_start,
            end_date=bucket_end,
            label=label,
            response_count=0,
        )
        for bucket_start, bucket_end, label in buckets
    ]
