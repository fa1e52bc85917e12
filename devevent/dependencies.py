"""Dependency injection for FastAPI endpoints.

Routes never touch the connection cache directly; they receive the
database handle, or a store bound to it, through these dependencies.

Usage in controllers:
    from devevent.dependencies import Events

    @router.get("/example")
    async def example(events: Events):
        return await events.list_recent()
"""

from typing import Annotated

from fastapi import Depends
from pymongo.asynchronous.database import AsyncDatabase

from devevent.db.bookings import BookingStore
from devevent.db.core import ensure_connected
from devevent.db.events import EventStore


async def get_database() -> AsyncDatabase:
    """Get the shared database handle, connecting on first use.

    Raises:
        ConfigurationError: If MONGODB_URI is not set.
        ConnectivityError: If MongoDB is unreachable.
    """
    return await ensure_connected()


Database = Annotated[AsyncDatabase, Depends(get_database)]


def get_event_store(database: Database) -> EventStore:
    return EventStore(database)


def get_booking_store(database: Database) -> BookingStore:
    return BookingStore(database)


Events = Annotated[EventStore, Depends(get_event_store)]
Bookings = Annotated[BookingStore, Depends(get_booking_store)]
