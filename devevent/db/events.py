import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import ValidationError
from pymongo import DESCENDING
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from devevent.config import EventSettings, get_settings
from devevent.db.schema import EVENTS
from devevent.errors import ConflictError, FieldValidationError
from devevent.models.events import EventCreate
from devevent.normalize import EventNormalizer

logger = logging.getLogger(__name__)


def _as_object_id(value: Any) -> ObjectId | None:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _to_event(doc: Mapping[str, Any]) -> dict[str, Any]:
    return {**doc, "_id": str(doc["_id"])}


def duplicate_key_value(error: DuplicateKeyError) -> dict[str, Any]:
    """Return the conflicting ``{field: value}`` reported by the server."""
    details = error.details or {}
    key_value = details.get("keyValue") or {}
    if not key_value:
        key_value = {field: None for field in details.get("keyPattern") or {}}
    return {
        k: v if v is None or isinstance(v, (str, int, float, bool)) else str(v)
        for k, v in key_value.items()
    }


class EventStore:
    """Event persistence on the ``events`` collection.

    Also serves as the ``EventExistence`` lookup for booking validation.
    """

    def __init__(self, database: AsyncDatabase, settings: EventSettings | None = None) -> None:
        settings = settings or get_settings().events
        self._collection = database[EVENTS]
        self._normalizer = EventNormalizer(self.slug_exists, settings.slug_max_attempts)
        self._insert_retries = settings.insert_retries
        self._list_limit = settings.list_limit

    async def slug_exists(self, slug: str) -> bool:
        return await self._collection.find_one({"slug": slug}, {"_id": 1}) is not None

    async def event_exists(self, event_id: Any) -> bool:
        oid = _as_object_id(event_id)
        if oid is None:
            return False
        return await self._collection.find_one({"_id": oid}, {"_id": 1}) is not None

    async def create(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Validate, normalize and insert a new event.

        A duplicate slug reported by the unique index (a concurrent insert
        won the race) re-derives the slug and retries the insert.

        Raises:
            FieldValidationError: If a field is missing or malformed.
            ConflictError: If a unique field still collides.
        """
        try:
            payload = EventCreate.model_validate(dict(fields))
        except ValidationError as e:
            raise FieldValidationError.from_pydantic(e) from None

        candidate: dict[str, Any] = payload.model_dump()
        await self._normalizer.normalize(candidate, changed=set(candidate))

        now = datetime.now(UTC)
        candidate["createdAt"] = now
        candidate["updatedAt"] = now

        retries = 0
        while True:
            doc = dict(candidate)
            try:
                await self._collection.insert_one(doc)
            except DuplicateKeyError as e:
                key_value = duplicate_key_value(e)
                if "slug" in key_value and retries < self._insert_retries:
                    retries += 1
                    logger.info(
                        "Slug %s taken at insert, re-deriving (retry %d/%d)",
                        candidate["slug"],
                        retries,
                        self._insert_retries,
                    )
                    await self._normalizer.normalize(candidate, changed={"title"})
                    continue
                field = next(iter(key_value), "unknown")
                logger.warning("Duplicate %s on event insert: %s", field, key_value)
                raise ConflictError(field, key_value) from e
            logger.info("Created event slug=%s id=%s", doc["slug"], doc["_id"])
            return _to_event(doc)

    async def list_recent(self, limit: int | None = None) -> list[dict[str, Any]]:
        limit = limit or self._list_limit
        cursor = self._collection.find({}).sort("createdAt", DESCENDING).limit(limit)
        return [_to_event(doc) for doc in await cursor.to_list(length=limit)]

    async def get_by_slug(self, slug: str) -> dict[str, Any] | None:
        doc = await self._collection.find_one({"slug": slug})
        return _to_event(doc) if doc else None

    async def delete_by_slug(self, slug: str) -> bool:
        result = await self._collection.delete_one({"slug": slug})
        return result.deleted_count > 0
