from devevent.db.bookings import BookingStore
from devevent.db.core import (
    ConnectionCache,
    close_connection,
    ensure_connected,
    get_connection_cache,
    reset_connection_cache,
)
from devevent.db.events import EventStore
from devevent.db.schema import ensure_indexes

__all__ = [
    "BookingStore",
    "ConnectionCache",
    "EventStore",
    "close_connection",
    "ensure_connected",
    "ensure_indexes",
    "get_connection_cache",
    "reset_connection_cache",
]
