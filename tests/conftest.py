"""
Pytest configuration and shared fixtures.
"""

import copy
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo import ReturnDocument

from api.config import config as api_config
from api.dependencies import get_store, get_upload_resolver
from api.main import app
from api.uploads import UploadResolver
from catalog.database import CatalogStore
from utilities.config import config


def _matches(document, query):
    for key, expected in query.items():
        if key == "$or":
            if not any(_matches(document, clause) for clause in expected):
                return False
        elif document.get(key) != expected:
            return False
    return True


def _project(document, projection):
    if not projection:
        return copy.deepcopy(document)
    keys = {"_id"} | {key for key, include in projection.items() if include}
    return {key: copy.deepcopy(value) for key, value in document.items() if key in keys}


class FakeCursor:
    """In-memory stand-in for a Motor cursor."""

    def __init__(self, documents):
        self._documents = list(documents)

    def sort(self, key, direction=1):
        self._documents.sort(key=lambda document: document.get(key), reverse=direction < 0)
        return self

    def skip(self, count):
        self._documents = self._documents[count:]
        return self

    def limit(self, count):
        if count:
            self._documents = self._documents[:count]
        return self

    async def to_list(self, length=None):
        return list(self._documents if length is None else self._documents[:length])

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for document in self._documents:
            yield document


class FakeCollection:
    """In-memory stand-in for the subset of the Motor collection API the store uses."""

    def __init__(self):
        self.documents = []
        self.indexes = []

    async def create_index(self, keys, **kwargs):
        self.indexes.append((keys, kwargs))
        return str(keys)

    async def insert_one(self, document):
        document.setdefault("_id", ObjectId())
        self.documents.append(copy.deepcopy(document))
        return SimpleNamespace(inserted_id=document["_id"])

    async def find_one(self, query, projection=None):
        for document in self.documents:
            if _matches(document, query):
                return _project(document, projection)
        return None

    def find(self, query=None, projection=None):
        query = query or {}
        return FakeCursor(_project(d, projection) for d in self.documents if _matches(d, query))

    async def count_documents(self, query):
        return sum(1 for document in self.documents if _matches(document, query))

    async def find_one_and_update(self, query, update, return_document=ReturnDocument.BEFORE):
        for document in self.documents:
            if _matches(document, query):
                before = copy.deepcopy(document)
                document.update(copy.deepcopy(update.get("$set", {})))
                return copy.deepcopy(document) if return_document == ReturnDocument.AFTER else before
        return None

    async def delete_one(self, query):
        for index, document in enumerate(self.documents):
            if _matches(document, query):
                del self.documents[index]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FakeDatabase:
    """In-memory stand-in for a Motor database; collections are created on first access."""

    def __init__(self):
        self._collections = {}

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self._collections.setdefault(name, FakeCollection())

    def __getitem__(self, name):
        return getattr(self, name)

    async def command(self, name):
        return {"ok": 1.0}


@pytest.fixture
def fake_database():
    """Empty in-memory database."""
    return FakeDatabase()


@pytest.fixture
def store(fake_database):
    """Data access layer over the in-memory database."""
    return CatalogStore(fake_database)


@pytest.fixture
def upload_resolver(tmp_path, monkeypatch):
    """Upload resolver for the configured uploads directory, inside a temporary working directory."""
    monkeypatch.chdir(tmp_path)
    resolver = UploadResolver(api_config.uploads_dir)
    resolver.ensure_directory()
    return resolver


@pytest.fixture
def fast_hashing():
    """Use the cheapest bcrypt cost factor."""
    with patch.object(config, "bcrypt_rounds", 4):
        yield


@pytest.fixture
def client(store, upload_resolver, fast_hashing):
    """Test client wired to the in-memory store and temporary uploads directory."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_upload_resolver] = lambda: upload_resolver
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def sample_review():
    """Review fields as a client submits them."""
    return {
        "username": "reader1",
        "isbn13": "9780441172719",
        "bookTitle": "Dune",
        "reviewText": "A sweeping desert epic.",
        "image": "https://example.com/dune.jpg",
        "price": "9.99",
        "subtitle": "Deluxe Edition",
    }


@pytest.fixture
def sample_book():
    """Book fields as a client submits them."""
    return {
        "title": "Dune",
        "subtitle": "Deluxe Edition",
        "isbn13": "9780441172719",
        "price": "9.99",
        "url": "http://example.com/b",
    }
