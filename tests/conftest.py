from __future__ import annotations

import asyncio
import copy
from pathlib import Path
import sys
from types import SimpleNamespace
from typing import Any

import pytest
from bson import ObjectId
from pymongo.errors import InvalidName, InvalidOperation


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


def _matches(doc: dict[str, Any], query: dict[str, Any]) -> bool:
    return all(doc.get(key) == value for key, value in query.items())


class FakeCursor:
    def __init__(self, docs: list[dict[str, Any]]):
        self._docs = docs
        self._limit = 0

    def limit(self, n: int) -> "FakeCursor":
        self._limit = n
        return self

    async def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        docs = self._docs[: self._limit] if self._limit else self._docs
        return [copy.deepcopy(d) for d in docs]


class FakeCollection:
    """In-memory stand-in for a motor collection; records every driver call."""

    def __init__(self, name: str):
        self.name = name
        self.docs: list[dict[str, Any]] = []
        self.calls: list[tuple[str, tuple, dict]] = []
        self.fail_with: Exception | None = None

    def _record(self, method: str, *args: Any, **kwargs: Any) -> None:
        self.calls.append((method, args, kwargs))
        if self.fail_with is not None:
            raise self.fail_with

    async def insert_many(self, documents, **options):
        self._record("insert_many", documents, **options)
        if not documents:
            raise InvalidOperation("documents must be a non-empty list")
        for doc in documents:
            if not isinstance(doc, dict):
                raise TypeError("document must be an instance of dict")
        ids = []
        for doc in documents:
            doc.setdefault("_id", ObjectId())
            self.docs.append(copy.deepcopy(doc))
            ids.append(doc["_id"])
        return SimpleNamespace(inserted_ids=ids)

    def find(self, query, **options):
        self._record("find", query, **options)
        return FakeCursor([d for d in self.docs if _matches(d, query)])

    async def _update(self, method, query, update, many, **options):
        self._record(method, query, update, **options)
        modified = 0
        for doc in self.docs:
            if not _matches(doc, query):
                continue
            changes = update.get("$set", {})
            if any(doc.get(k) != v for k, v in changes.items()):
                doc.update(changes)
                modified += 1
            if not many:
                break
        return SimpleNamespace(modified_count=modified)

    async def update_one(self, query, update, **options):
        return await self._update("update_one", query, update, False, **options)

    async def update_many(self, query, update, **options):
        return await self._update("update_many", query, update, True, **options)

    async def count_documents(self, query, **options):
        self._record("count_documents", query, **options)
        return len([d for d in self.docs if _matches(d, query)])

    async def _delete(self, method, query, many, **options):
        self._record(method, query, **options)
        kept, deleted = [], 0
        for doc in self.docs:
            if _matches(doc, query) and (many or deleted == 0):
                deleted += 1
            else:
                kept.append(doc)
        self.docs = kept
        return SimpleNamespace(deleted_count=deleted)

    async def delete_one(self, query, **options):
        return await self._delete("delete_one", query, False, **options)

    async def delete_many(self, query, **options):
        return await self._delete("delete_many", query, True, **options)


class FakeDatabase:
    def __init__(self, name: str):
        self.name = name
        self.collections: dict[str, FakeCollection] = {}
        self.list_error: Exception | None = None

    def __getitem__(self, name: str) -> FakeCollection:
        if "$" in name or ".." in name or name.startswith(".") or name.endswith("."):
            raise InvalidName(f"collection names must not contain '$': {name!r}")
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]

    async def list_collection_names(self, filter=None):
        if self.list_error is not None:
            raise self.list_error
        names = [n for n, c in self.collections.items() if c.docs]
        if filter and "name" in filter:
            names = [n for n in names if n == filter["name"]]
        return names


class FakeAdmin:
    def __init__(self, client: "FakeClient"):
        self._client = client
        self.commands: list[str] = []

    async def command(self, name: str):
        self.commands.append(name)
        if self._client.gate is not None:
            await self._client.gate.wait()
        if self._client.connect_error is not None:
            raise self._client.connect_error
        return {"ok": 1}


class FakeClient:
    def __init__(self):
        self.admin = FakeAdmin(self)
        self.databases: dict[str, FakeDatabase] = {}
        self.gate: asyncio.Event | None = None
        self.connect_error: Exception | None = None
        self.closed = False
        self.created_with: tuple[str, dict[str, Any]] | None = None

    def __getitem__(self, name: str) -> FakeDatabase:
        if name not in self.databases:
            self.databases[name] = FakeDatabase(name)
        return self.databases[name]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def client_factory(fake_client: FakeClient):
    def _factory(url: str, **options: Any) -> FakeClient:
        fake_client.created_with = (url, options)
        return fake_client

    return _factory


@pytest.fixture
def make_db(client_factory):
    """Build an unconnected facade wired to the fake client."""
    from database.mongodb import MongoDB

    def _make(url: str = "mongodb://localhost:27017", db_name: str = "testdb", **kwargs: Any) -> MongoDB:
        return MongoDB(url, db_name, client_factory=client_factory, client_options={}, **kwargs)

    return _make


@pytest.fixture
def connected_db(make_db):
    database = make_db()
    assert asyncio.run(database.connect()) is True
    return database


@pytest.fixture
def collection(connected_db, fake_client) -> FakeCollection:
    return fake_client["testdb"]["c"]
