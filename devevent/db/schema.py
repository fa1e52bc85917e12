"""Collection index management.

``ensure_indexes`` is idempotent: MongoDB ignores a ``create_index`` call
for an index that already exists with the same keys and options.
"""

import logging

from pymongo import ASCENDING
from pymongo.asynchronous.database import AsyncDatabase

logger = logging.getLogger(__name__)

EVENTS = "events"
BOOKINGS = "bookings"


async def ensure_indexes(database: AsyncDatabase) -> None:
    """Create the indexes the stores rely on.

    ``events.slug`` is unique and is the final authority on slug
    uniqueness; the normalizer's existence checks only avoid most
    collisions.
    """
    await database[EVENTS].create_index([("slug", ASCENDING)], unique=True, name="slug_unique")
    await database[BOOKINGS].create_index([("eventId", ASCENDING)], name="event_id")
    await database[BOOKINGS].create_index(
        [("eventId", ASCENDING), ("email", ASCENDING)], name="event_id_email"
    )
    logger.debug("Indexes ensured on %s", database.name)
