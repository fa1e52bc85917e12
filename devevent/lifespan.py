"""Lifespan management for the FastAPI application.

Startup optionally warms the MongoDB connection cache; shutdown closes it.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import FastAPI

from devevent.config import get_settings
from devevent.db.core import close_connection, get_connection_cache

logger = logging.getLogger(__name__)


@dataclass
class LifespanResources:
    """Container for resources initialized during lifespan."""

    db_connected: bool = False


async def init_database() -> bool:
    """Connect eagerly when CONNECT_ON_STARTUP is set.

    Returns:
        True if the connection was established, False otherwise.
    """
    if not get_settings().features.connect_on_startup:
        return False
    try:
        await get_connection_cache().ensure_connected()
        return True
    except Exception as e:
        # Requests retry the connection on demand.
        logger.warning("Failed to connect to MongoDB on startup: %s", e)
    return False


async def setup_resources() -> LifespanResources:
    resources = LifespanResources()
    resources.db_connected = await init_database()
    return resources


async def cleanup_resources(resources: LifespanResources) -> None:
    await close_connection()
    resources.db_connected = False


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    resources = await setup_resources()
    try:
        yield
    finally:
        await cleanup_resources(resources)
