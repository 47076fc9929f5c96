from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TimeframeType(str, Enum):
    WEEKEND = "weekend"
    WEEKDAY = "weekday"
    SPECIFIC_DATES = "specific_dates"
    ALL_DAYS = "all_days"


class EventStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"
    EXPIRED = "expired"


class Availability(str, Enum):
    NOT_AVAILABLE = "not_available"
    COULD_MAKE = "could_make"
    PREFERRED = "preferred"


class CamelModel(BaseModel):
    """Serialized with camelCase keys; accepts either spelling on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Event(CamelModel):
    event_id: str
    title: str
    description: str | None = None
    creator_name: str
    creator_email: str | None = None
    start_date: datetime
    end_date: datetime
    timeframe_type: TimeframeType
    share_code: str
    created_at: datetime
    expires_at: datetime | None = None
    status: EventStatus = EventStatus.ACTIVE


class Timeframe(CamelModel):
    timeframe_id: str
    event_id: str
    start_date: datetime
    end_date: datetime
    label: str
    response_count: int = 0


class Respondent(CamelModel):
    respondent_id: str
    event_id: str
    name: str
    email: str | None = None
    first_responded_at: datetime


class Response(CamelModel):
    event_id: str
    respondent_id: str
    respondent_name: str
    timeframe_id: str
    availability: Availability
    responded_at: datetime


class RespondentAvailability(CamelModel):
    respondent_id: str
    respondent_name: str
    availability: Availability


class TimeframeSummary(CamelModel):
    timeframe_id: str
    label: str
    start_date: datetime
    end_date: datetime
    preferred_count: int = 0
    could_make_count: int = 0
    not_available_count: int = 0
    score: int = 0
    respondents: list[RespondentAvailability] = []


class EventDetails(CamelModel):
    event: Event
    timeframes: list[Timeframe]


class EventSummary(CamelModel):
    event: Event
    timeframes: list[Timeframe]
    total_respondents: int
    timeframe_summaries: list[TimeframeSummary]
