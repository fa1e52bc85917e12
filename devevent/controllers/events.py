import logging

from fastapi import APIRouter, Request

from devevent.dependencies import Events
from devevent.errors import NotFoundError
from devevent.forms import read_submission
from devevent.models.events import (
    Event,
    EventCreatedResponse,
    EventListResponse,
    EventResponse,
)

logger = logging.getLogger("devevent.events")
router = APIRouter(prefix="/api/events", tags=["events"])


@router.post("", status_code=201, response_model=EventCreatedResponse)
async def create_event(request: Request, events: Events) -> EventCreatedResponse:
    fields = await read_submission(request)
    logger.info("POST /api/events title=%s", fields.get("title"))
    event = await events.create(fields)
    return EventCreatedResponse(
        message="Event Created Successfully",
        event=Event.model_validate(event),
    )


@router.get("", response_model=EventListResponse)
async def list_events(events: Events) -> EventListResponse:
    docs = await events.list_recent()
    return EventListResponse(events=[Event.model_validate(doc) for doc in docs])


@router.get("/{slug}", response_model=EventResponse)
async def get_event(slug: str, events: Events) -> EventResponse:
    doc = await events.get_by_slug(slug)
    if doc is None:
        logger.warning("Event not found: %s", slug)
        raise NotFoundError(detail="Event not found", slug=slug)
    return EventResponse(event=Event.model_validate(doc))
