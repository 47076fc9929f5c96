import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter
from pydantic import field_validator, model_validator

from scheduler.dependencies import Store
from scheduler.errors import APIError, DatabaseError
from scheduler.models import (
    Availability,
    CamelModel,
    Event,
    EventDetails,
    EventSummary,
    Response,
    Timeframe,
    TimeframeType,
)
from scheduler.services import events as event_service
from scheduler.services import responses as response_service

logger = logging.getLogger("scheduler.api.events")
router = APIRouter(prefix="/events", tags=["events"])


def _required_text(v: str, field: str, max_length: int) -> str:
    v = v.strip()
    if not v or len(v) > max_length:
        raise ValueError(f"{field} must be 1-{max_length} characters")
    return v


class CreateEventRequest(CamelModel):
    title: str
    description: Optional[str] = None
    start_date: datetime
    end_date: datetime
    timeframe_type: TimeframeType
    creator_name: str
    creator_email: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _required_text(v, "title", 200)

    @field_validator("creator_name")
    @classmethod
    def validate_creator_name(cls, v: str) -> str:
        return _required_text(v, "creatorName", 200)

    @model_validator(mode="after")
    def validate_range(self) -> "CreateEventRequest":
        if self.end_date.replace(tzinfo=None) <= self.start_date.replace(tzinfo=None):
            raise ValueError("endDate must be after startDate")
        return self


class CreateEventResponse(CamelModel):
    event_id: str
    share_code: str
    timeframes: list[Timeframe]
    event: Event


class TimeframeVote(CamelModel):
    timeframe_id: str
    availability: Availability


class SubmitResponsesRequest(CamelModel):
    respondent_name: str
    respondent_email: Optional[str] = None
    responses: list[TimeframeVote]

    @field_validator("respondent_name")
    @classmethod
    def validate_respondent_name(cls, v: str) -> str:
        return _required_text(v, "respondentName", 100)

    @field_validator("responses")
    @classmethod
    def validate_responses(cls, v: list[TimeframeVote]) -> list[TimeframeVote]:
        if not v:
            raise ValueError("at least one response is required")
        return v

    def votes(self) -> dict[str, Availability]:
        # A timeframe listed twice keeps its last vote.
        return {vote.timeframe_id: vote.availability for vote in self.responses}


class SubmitResponsesResponse(CamelModel):
    respondent_id: str
    success: bool = True
    message: str


@router.post("", status_code=201, response_model=CreateEventResponse)
async def create_event(req: CreateEventRequest, store: Store) -> CreateEventResponse:
    logger.info("POST /events title=%s type=%s", req.title, req.timeframe_type.value)
    try:
        details = await event_service.create_event(
            store,
            title=req.title,
            description=req.description,
            creator_name=req.creator_name,
            creator_email=req.creator_email,
            start_date=req.start_date,
            end_date=req.end_date,
            timeframe_type=req.timeframe_type,
        )
    except APIError:
        raise
    except Exception as e:
        logger.exception("Failed to create event")
        raise DatabaseError(detail="Failed to create event") from e
    return CreateEventResponse(
        event_id=details.event.event_id,
        share_code=details.event.share_code,
        timeframes=details.timeframes,
        event=details.event,
    )


@router.get("/code/{share_code}", response_model=EventDetails)
async def get_event_by_share_code(share_code: str, store: Store) -> EventDetails:
    logger.info("GET /events/code/%s", share_code)
    return await event_service.get_event_by_share_code(store, share_code)


@router.get("/{event_id}", response_model=EventDetails)
async def get_event(event_id: str, store: Store) -> EventDetails:
    logger.info("GET /events/%s", event_id)
    return await event_service.get_event(store, event_id)


@router.post("/{event_id}/close", response_model=Event)
async def close_event(event_id: str, store: Store) -> Event:
    logger.info("POST /events/%s/close", event_id)
    return await event_service.close_event(store, event_id)


@router.post("/{event_id}/responses", status_code=201, response_model=SubmitResponsesResponse)
async def submit_responses(
    event_id: str, req: SubmitResponsesRequest, store: Store
) -> SubmitResponsesResponse:
    logger.info(
        "POST /events/%s/responses respondent=%s responses=%d",
        event_id,
        req.respondent_name,
        len(req.responses),
    )
    try:
        respondent_id = await response_service.submit_responses(
            store,
            event_id,
            respondent_name=req.respondent_name,
            respondent_email=req.respondent_email,
            votes=req.votes(),
        )
    except APIError:
        raise
    except Exception as e:
        logger.exception("Failed to submit responses")
        raise DatabaseError(detail="Failed to submit responses") from e
    return SubmitResponsesResponse(
        respondent_id=respondent_id, message="Responses submitted successfully"
    )


@router.put("/{event_id}/responses/{respondent_id}", response_model=SubmitResponsesResponse)
async def update_responses(
    event_id: str, respondent_id: str, req: SubmitResponsesRequest, store: Store
) -> SubmitResponsesResponse:
    logger.info(
        "PUT /events/%s/responses/%s responses=%d", event_id, respondent_id, len(req.responses)
    )
    try:
        await response_service.update_responses(
            store,
            event_id,
            respondent_id,
            respondent_name=req.respondent_name,
            votes=req.votes(),
        )
    except APIError:
        raise
    except Exception as e:
        logger.exception("Failed to update responses")
        raise DatabaseError(detail="Failed to update responses") from e
    return SubmitResponsesResponse(
        respondent_id=respondent_id, message="Responses updated successfully"
    )


@router.get("/{event_id}/responses/{respondent_id}", response_model=list[Response])
async def get_respondent_responses(
    event_id: str, respondent_id: str, store: Store
) -> list[Response]:
    logger.info("GET /events/%s/responses/%s", event_id, respondent_id)
    return await response_service.get_respondent_responses(store, event_id, respondent_id)


@router.get("/{event_id}/summary", response_model=EventSummary)
async def get_summary(event_id: str, store: Store) -> EventSummary:
    logger.info("GET /events/%s/summary", event_id)
    summary = await response_service.get_event_summary(store, event_id)
    logger.info(
        "Summary for %s: %d timeframes, %d respondents",
        event_id,
        len(summary.timeframe_summaries),
        summary.total_respondents,
    )
    return summary
