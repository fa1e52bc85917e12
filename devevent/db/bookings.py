import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from bson import ObjectId
from pydantic import ValidationError
from pymongo import DESCENDING
from pymongo.asynchronous.database import AsyncDatabase

from devevent.booking_validator import BookingValidator
from devevent.db.events import EventStore
from devevent.db.schema import BOOKINGS
from devevent.errors import FieldValidationError
from devevent.models.bookings import BookingCreate

logger = logging.getLogger(__name__)


def _to_booking(doc: Mapping[str, Any]) -> dict[str, Any]:
    return {**doc, "_id": str(doc["_id"]), "eventId": str(doc["eventId"])}


class BookingStore:
    """Booking persistence on the ``bookings`` collection."""

    def __init__(
        self,
        database: AsyncDatabase,
        validator: BookingValidator | None = None,
    ) -> None:
        self._collection = database[BOOKINGS]
        self._validator = validator or BookingValidator(EventStore(database))

    async def create(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Validate and insert a booking.

        Raises:
            FieldValidationError: If ``eventId`` or ``email`` is malformed.
            ReferentialError: If the referenced event does not exist.
            ReferenceLookupError: If the event lookup itself failed.
        """
        try:
            payload = BookingCreate.model_validate(dict(fields))
        except ValidationError as e:
            raise FieldValidationError.from_pydantic(e) from None

        candidate = payload.model_dump()
        await self._validator.validate(candidate, changed=set(candidate))

        now = datetime.now(UTC)
        doc = {
            "eventId": ObjectId(candidate["event_id"]),
            "email": candidate["email"],
            "createdAt": now,
            "updatedAt": now,
        }
        await self._collection.insert_one(doc)
        logger.info("Created booking id=%s event_id=%s", doc["_id"], doc["eventId"])
        return _to_booking(doc)

    async def list_for_event(self, event_id: str) -> list[dict[str, Any]]:
        cursor = self._collection.find({"eventId": ObjectId(event_id)}).sort(
            "createdAt", DESCENDING
        )
        return [_to_booking(doc) for doc in await cursor.to_list(length=None)]
