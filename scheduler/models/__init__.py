from scheduler.models.scheduling import (
    Availability,
    CamelModel,
    Event,
    EventDetails,
    EventStatus,
    EventSummary,
    Respondent,
    RespondentAvailability,
    Response,
    Timeframe,
    TimeframeSummary,
    TimeframeType,
)

__all__ = [
    "Availability",
    "CamelModel",
    "Event",
    "EventDetails",
    "EventStatus",
    "EventSummary",
    "Respondent",
    "RespondentAvailability",
    "Response",
    "Timeframe",
    "TimeframeSummary",
    "TimeframeType",
]
