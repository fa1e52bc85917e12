import logging

from fastapi import APIRouter, Request

from devevent.dependencies import Bookings, Events
from devevent.errors import NotFoundError
from devevent.forms import read_submission
from devevent.models.bookings import Booking, BookingCreatedResponse, BookingListResponse

logger = logging.getLogger("devevent.bookings")
router = APIRouter(prefix="/api", tags=["bookings"])


@router.post("/bookings", status_code=201, response_model=BookingCreatedResponse)
async def create_booking(request: Request, bookings: Bookings) -> BookingCreatedResponse:
    fields = await read_submission(request)
    logger.info("POST /api/bookings event_id=%s", fields.get("eventId"))
    booking = await bookings.create(fields)
    return BookingCreatedResponse(
        message="Booking Created Successfully",
        booking=Booking.model_validate(booking),
    )


@router.get("/events/{slug}/bookings", response_model=BookingListResponse)
async def list_event_bookings(slug: str, events: Events, bookings: Bookings) -> BookingListResponse:
    event = await events.get_by_slug(slug)
    if event is None:
        raise NotFoundError(detail="Event not found", slug=slug)
    docs = await bookings.list_for_event(event["_id"])
    return BookingListResponse(bookings=[Booking.model_validate(doc) for doc in docs])
