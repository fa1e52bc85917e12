"""Core MongoDB connection management."""

import asyncio
import logging
import re
from collections.abc import Callable

from pymongo import AsyncMongoClient
from pymongo import errors as mongo_errors
from pymongo.asynchronous.database import AsyncDatabase

from devevent.config import MongoSettings, get_settings
from devevent.errors import ConfigurationError, ConnectivityError

_logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "devevent"

# DNS/SRV resolution and refused-connection failures, as reported by the
# driver and by the Python resolver.
_NETWORK_FAILURE_RE = re.compile(
    r"querySrv|ECONNREFUSED|ENOTFOUND|connection refused|name or service not known"
    r"|nodename nor servname|name does not resolve"
    r"|DNS (?:query name does not exist|operation timed out|response does not contain)"
    r"|nameservers failed to answer",
    re.IGNORECASE,
)


def _connectivity_error(error: Exception, uri: str) -> ConnectivityError | None:
    """Translate a failed connection attempt, or return None to re-raise as is."""
    message = str(error)
    if _NETWORK_FAILURE_RE.search(message):
        if uri.startswith("mongodb+srv://"):
            extra = (
                "The URI uses mongodb+srv:// - DNS SRV lookup failed. "
                "Try a non-SRV connection string or fix DNS/network."
            )
        else:
            extra = (
                "Network error while connecting to MongoDB. "
                "Check that the host is reachable and credentials are correct."
            )
        return ConnectivityError(
            f"MongoDB connection error: {message}. {extra} See MONGODB_URI and network settings."
        )
    if isinstance(error, mongo_errors.ConnectionFailure):
        return ConnectivityError(f"MongoDB connection error: {message}")
    return None


class ConnectionCache:
    """Lazily connects to MongoDB once and hands out the same database handle.

    Concurrent callers share a single in-flight attempt. A failed attempt
    is forgotten so the next call dials again.
    """

    def __init__(
        self,
        settings: MongoSettings | None = None,
        client_factory: Callable[..., AsyncMongoClient] = AsyncMongoClient,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory
        self._client: AsyncMongoClient | None = None
        self._database: AsyncDatabase | None = None
        self._pending: asyncio.Task | None = None

    @property
    def is_connected(self) -> bool:
        return self._database is not None

    @property
    def database(self) -> AsyncDatabase | None:
        return self._database

    async def ensure_connected(self) -> AsyncDatabase:
        """Return the shared database handle, connecting first if needed.

        Raises:
            ConfigurationError: If MONGODB_URI is not set.
            ConnectivityError: If the server could not be reached.
        """
        settings = self._settings or get_settings().mongo
        uri = settings.uri.strip()
        if not uri:
            raise ConfigurationError(
                "Please define the MONGODB_URI environment variable"
            )

        if self._database is not None:
            return self._database

        if self._pending is None:
            self._pending = asyncio.create_task(self._connect(uri, settings))
        pending = self._pending

        try:
            client, database = await asyncio.shield(pending)
        except Exception as e:
            if self._pending is pending:
                self._pending = None
            _logger.warning("MongoDB connection attempt failed: %s", e)
            wrapped = _connectivity_error(e, uri)
            if wrapped is None:
                raise
            raise wrapped from e

        if self._database is None:
            self._client = client
            self._database = database
            self._pending = None
        return self._database

    async def _connect(
        self, uri: str, settings: MongoSettings
    ) -> tuple[AsyncMongoClient, AsyncDatabase]:
        _logger.info(
            "Connecting to MongoDB (server_selection_timeout_ms=%d)",
            settings.server_selection_timeout_ms,
        )
        client = self._client_factory(
            uri, serverSelectionTimeoutMS=settings.server_selection_timeout_ms
        )
        try:
            # Surface an unreachable server now instead of on the first write.
            await client.admin.command("ping")
            if settings.database:
                database = client[settings.database]
            else:
                database = client.get_default_database(default=DEFAULT_DATABASE)
            if settings.auto_index:
                # Import here to avoid circular imports
                from devevent.db.schema import ensure_indexes

                await ensure_indexes(database)
        except BaseException:
            await client.close()
            raise
        _logger.info("Connected to MongoDB database %s", database.name)
        return client, database

    async def close(self) -> None:
        client = self._client
        self._client = None
        self._database = None
        self._pending = None
        if client is not None:
            await client.close()
            _logger.info("MongoDB connection closed")


# Process-wide cache
_cache: ConnectionCache | None = None


def get_connection_cache() -> ConnectionCache:
    global _cache
    if _cache is None:
        _cache = ConnectionCache()
    return _cache


async def ensure_connected() -> AsyncDatabase:
    return await get_connection_cache().ensure_connected()


async def close_connection() -> None:
    global _cache
    if _cache is not None:
        await _cache.close()


def reset_connection_cache() -> None:
    """Forget the process-wide cache without closing it (useful for testing)."""
    global _cache
    _cache = None


__all__ = [
    "ConnectionCache",
    "close_connection",
    "ensure_connected",
    "get_connection_cache",
    "reset_connection_cache",
]
