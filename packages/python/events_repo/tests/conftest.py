import copy
from dataclasses import dataclass

import pytest
import pytest_asyncio
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from events_repo import EventsRepository


@dataclass
class FakeInsertOneResult:
    inserted_id: ObjectId


class FakeCursor:
    def __init__(self, docs):
        self._docs = list(docs)

    def sort(self, key, direction=1):
        self._docs.sort(key=lambda doc: doc.get(key), reverse=direction < 0)
        return self

    def __aiter__(self):
        self._iter = iter(self._docs)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    """Subset of AsyncIOMotorCollection used by the repository."""

    def __init__(self):
        self.docs = []
        self.unique_fields = set()
        self.indexes = []
        self.find_one_calls = []

    @staticmethod
    def _matches(doc, query):
        return all(doc.get(key) == value for key, value in query.items())

    def _check_unique(self, candidate, skip_id=None):
        for field in self.unique_fields:
            for other in self.docs:
                if other["_id"] != skip_id and other.get(field) == candidate.get(field):
                    raise DuplicateKeyError(
                        f"E11000 duplicate key error dup key: {{ {field}: {candidate.get(field)!r} }}",
                        code=11000,
                        details={"keyPattern": {field: 1}},
                    )

    async def create_index(self, key, unique=False):
        self.indexes.append((key, unique))
        if unique:
            self.unique_fields.add(key)
        return f"{key}_1"

    async def find_one(self, query, projection=None):
        self.find_one_calls.append(query)
        for doc in self.docs:
            if self._matches(doc, query):
                if projection:
                    return {key: doc[key] for key in projection if key in doc}
                return copy.deepcopy(doc)
        return None

    async def insert_one(self, doc):
        doc.setdefault("_id", ObjectId())
        self._check_unique(doc)
        self.docs.append(copy.deepcopy(doc))
        return FakeInsertOneResult(doc["_id"])

    async def update_one(self, query, update):
        for doc in self.docs:
            if self._matches(doc, query):
                candidate = {**doc, **update["$set"]}
                self._check_unique(candidate, skip_id=doc["_id"])
                doc.update(copy.deepcopy(update["$set"]))
                return
        return

    def find(self, query):
        return FakeCursor(copy.deepcopy(doc) for doc in self.docs if self._matches(doc, query))


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())


def make_event_payload(**overrides):
    base = dict(
        title="Tech Talk: AI & You!",
        description="An evening of talks about applied machine learning.",
        overview="Short talks followed by a panel.",
        image="/images/tech-talk.png",
        venue="Main Hall",
        location="Berlin, Germany",
        date="2024-03-01",
        time="14:30",
        mode="offline",
        audience="Developers",
        agenda=["Intro", "Q&A"],
        organizer="Local Tech Group",
        tags=["ai", "talks"],
    )
    base.update(overrides)
    return base


@pytest.fixture()
def fake_db():
    return FakeDatabase()


@pytest_asyncio.fixture()
async def repo(fake_db):
    repository = EventsRepository(fake_db)
    await repository.ensure_indexes()
    return repository


@pytest.fixture()
def event_payload():
    return make_event_payload
