import os
import sys
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError

from devevent.config import EventSettings, clear_settings_cache
from devevent.db import reset_connection_cache


def _matches(doc: dict, query: dict) -> bool:
    return all(doc.get(key) == value for key, value in query.items())


class FakeCursor:
    def __init__(self, docs: list[dict]):
        self._docs = docs
        self._limit = 0

    def sort(self, key, direction=1):
        self._docs = sorted(self._docs, key=lambda d: d.get(key), reverse=direction < 0)
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    async def to_list(self, length=None):
        docs = self._docs
        for cap in (self._limit, length):
            if cap:
                docs = docs[:cap]
        return [dict(d) for d in docs]


class FakeCollection:
    """In-memory stand-in for an async pymongo collection.

    ``unique`` lists fields with a unique index. ``stale_reads`` makes the
    next N ``find_one`` calls miss, simulating a concurrent insert that
    landed between the existence check and the insert.
    """

    def __init__(self, name: str, unique: tuple[str, ...] = ()):
        self.name = name
        self.unique = unique
        self.docs: list[dict] = []
        self.indexes: list[tuple] = []
        self.stale_reads = 0
        self.find_one_calls = 0

    async def find_one(self, query: dict, projection=None):
        self.find_one_calls += 1
        if self.stale_reads:
            self.stale_reads -= 1
            return None
        for doc in self.docs:
            if _matches(doc, query):
                if projection:
                    return {key: doc[key] for key in projection if key in doc}
                return dict(doc)
        return None

    async def insert_one(self, doc: dict):
        for field in self.unique:
            if any(existing.get(field) == doc.get(field) for existing in self.docs):
                raise DuplicateKeyError(
                    f"E11000 duplicate key error collection: {self.name} index: {field}_1",
                    code=11000,
                    details={"keyPattern": {field: 1}, "keyValue": {field: doc.get(field)}},
                )
        doc.setdefault("_id", ObjectId())
        self.docs.append(dict(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    def find(self, query: dict | None = None):
        return FakeCursor([d for d in self.docs if _matches(d, query or {})])

    async def delete_one(self, query: dict):
        for i, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def create_index(self, keys, **kwargs):
        self.indexes.append((keys, kwargs))
        return kwargs.get("name")


class FakeDatabase:
    def __init__(self, name: str = "devevent_test"):
        self.name = name
        self.collections = {
            "events": FakeCollection("events", unique=("slug",)),
            "bookings": FakeCollection("bookings"),
        }
        self.ping_error: Exception | None = None

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]

    async def command(self, name: str):
        if self.ping_error:
            raise self.ping_error
        return {"ok": 1.0}


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def event_settings():
    return EventSettings(slug_max_attempts=100, insert_retries=3, list_limit=50)


@pytest.fixture(autouse=True)
def _isolate_settings():
    clear_settings_cache()
    reset_connection_cache()
    yield
    clear_settings_cache()
    reset_connection_cache()


@pytest.fixture
def client(fake_db):
    import devevent.main as main
    from devevent.dependencies import get_database

    main.app.dependency_overrides[get_database] = lambda: fake_db
    with TestClient(main.app) as c:
        yield c
    main.app.dependency_overrides.clear()
