"""Record store adapters.

The record store holds the threat-intelligence collections. url-intel only
reads from it. One store instance is opened at process start and shared by all
requests, so implementations must be safe to call from several threads.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from pymongo import MongoClient
from pymongo.errors import ConnectionFailure, PyMongoError

from .errors import StoreUnavailable

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class RecordStore:
    """Read-only access to named collections."""

    def find_one(self, collection: str, query: Mapping[str, Any]) -> Optional[Record]:
        """Return the first record matching every field of `query`, or None."""
        raise NotImplementedError

    def find_many(
        self, collection: str, query: Mapping[str, Any], *, limit: int = 100
    ) -> list[Record]:
        raise NotImplementedError

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        pass


def _jsonable_record(doc: Mapping[str, Any]) -> Record:
    out = dict(doc)
    # ObjectId is not JSON-serializable.
    if "_id" in out:
        out["_id"] = str(out["_id"])
    return out


class MongoRecordStore(RecordStore):
    """MongoDB-backed store. `MongoClient` is thread-safe and pools connections."""

    def __init__(
        self,
        uri: str = "mongodb://localhost:27017",
        db_name: str = "test_db",
        *,
        server_selection_timeout_ms: int = 5000,
        client: Optional[MongoClient] = None,
    ):
        self.uri = uri
        self.db_name = db_name
        self._client = client if client is not None else MongoClient(
            uri, serverSelectionTimeoutMS=server_selection_timeout_ms
        )
        self._db = self._client[db_name]
        logger.info("Opened record store %s (database %s)", uri, db_name)

    def find_one(self, collection: str, query: Mapping[str, Any]) -> Optional[Record]:
        try:
            doc = self._db[collection].find_one(dict(query))
        except ConnectionFailure as e:
            raise StoreUnavailable(str(e)) from e
        return _jsonable_record(doc) if doc is not None else None

    def find_many(
        self, collection: str, query: Mapping[str, Any], *, limit: int = 100
    ) -> list[Record]:
        try:
            cursor = self._db[collection].find(dict(query)).limit(limit)
            return [_jsonable_record(doc) for doc in cursor]
        except ConnectionFailure as e:
            raise StoreUnavailable(str(e)) from e

    def ping(self) -> bool:
        try:
            self._client.admin.command("ping")
        except PyMongoError as e:
            logger.warning("Record store ping failed: %s", e)
            return False
        return True

    def close(self) -> None:
        self._client.close()
        logger.info("Closed record store %s", self.uri)


class MemoryRecordStore(RecordStore):
    """In-memory store, used for tests and local development.

    Supports equality queries plus a simplified `$text` search (case-insensitive
    substring over string fields).
    """

    def __init__(self, collections: Optional[Mapping[str, list[Record]]] = None):
        self.collections: dict[str, list[Record]] = {
            name: list(records) for name, records in (collections or {}).items()
        }

    def add(self, collection: str, record: Record) -> None:
        self.collections.setdefault(collection, []).append(record)

    @staticmethod
    def _matches(record: Mapping[str, Any], query: Mapping[str, Any]) -> bool:
        for key, expected in query.items():
            if key == "$text":
                needle = str(expected.get("$search", "")).lower()
                haystack = " ".join(str(v) for v in record.values() if isinstance(v, str))
                if needle not in haystack.lower():
                    return False
            elif record.get(key) != expected:
                return False
        return True

    def find_one(self, collection: str, query: Mapping[str, Any]) -> Optional[Record]:
        for record in self.collections.get(collection, []):
            if self._matches(record, query):
                return dict(record)
        return None

    def find_many(
        self, collection: str, query: Mapping[str, Any], *, limit: int = 100
    ) -> list[Record]:
        found = [
            dict(r) for r in self.collections.get(collection, []) if self._matches(r, query)
        ]
        return found[:limit]
