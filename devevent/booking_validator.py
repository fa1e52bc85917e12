"""Referential checks for booking candidates."""

import logging
import re
from collections.abc import Collection, Mapping
from typing import Any, Protocol

from devevent.errors import ReferenceLookupError, ReferentialError

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class EventExistence(Protocol):
    async def event_exists(self, event_id: Any) -> bool: ...


class BookingValidator:
    """Confirms a booking's ``event_id`` points at a stored event."""

    def __init__(self, events: EventExistence) -> None:
        self._events = events

    async def validate(self, candidate: Mapping[str, Any], changed: Collection[str]) -> None:
        if "event_id" not in changed:
            return

        event_id = candidate.get("event_id")
        try:
            exists = await self._events.event_exists(event_id)
        except Exception as e:
            logger.warning("Event lookup failed for booking event_id=%s: %s", event_id, e)
            raise ReferenceLookupError(f"Failed to validate event reference: {e}") from e

        if not exists:
            raise ReferentialError()
