"""
Shared fixtures.

The repositories are written against pymongo's asyncio API. mongomock only
offers the synchronous API, so the fixtures below wrap mongomock collections
in a thin awaitable facade exposing exactly the calls the repositories make.
Each call yields to the event loop first, the way a real driver round trip
does, so tasks run with asyncio.gather interleave between database calls.
"""

import asyncio

import mongomock
import pytest


class AsyncCursor:
    def __init__(self, docs):
        self._docs = list(docs)

    async def to_list(self, length=None):
        await asyncio.sleep(0)
        return self._docs if length is None else self._docs[:length]


class AsyncCollection:
    def __init__(self, collection):
        self._collection = collection

    async def find_one(self, *args, **kwargs):
        await asyncio.sleep(0)
        return self._collection.find_one(*args, **kwargs)

    async def insert_one(self, document, *args, **kwargs):
        await asyncio.sleep(0)
        return self._collection.insert_one(document, *args, **kwargs)

    async def update_one(self, *args, **kwargs):
        await asyncio.sleep(0)
        return self._collection.update_one(*args, **kwargs)

    async def delete_many(self, *args, **kwargs):
        await asyncio.sleep(0)
        return self._collection.delete_many(*args, **kwargs)

    async def create_index(self, keys, **kwargs):
        return self._collection.create_index(keys, **kwargs)

    async def aggregate(self, pipeline, *args, **kwargs):
        await asyncio.sleep(0)
        return AsyncCursor(self._collection.aggregate(pipeline, *args, **kwargs))

    def find(self, *args, **kwargs):
        return AsyncCursor(self._collection.find(*args, **kwargs))

    def index_information(self):
        return self._collection.index_information()

    @property
    def sync(self):
        return self._collection


class AsyncDatabase:
    def __init__(self, database):
        self._database = database

    def __getitem__(self, name):
        return AsyncCollection(self._database[name])


@pytest.fixture
def mock_db():
    """Raw synchronous mongomock database, for seeding and assertions."""
    return mongomock.MongoClient().db


@pytest.fixture
def async_db(mock_db):
    """The same database behind the asyncio facade the repositories expect."""
    return AsyncDatabase(mock_db)
