"""MongoDB sink - bulk-inserts datapoints with pymongo's async client.

Requires the ``mongo`` extra::

    pip install sensor-datagen[mongo]

By default every organization gets its own collection (named after the
organization id) inside the ``sensorData`` database.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

from sensor_datagen.models import Datapoint
from sensor_datagen.sinks.base import DEFAULT_BATCH_SIZE, Sink

__all__ = ["DEFAULT_DATABASE", "DEFAULT_URI", "MongoSink"]

logger = logging.getLogger("sensor_datagen.sinks.mongo")

DEFAULT_URI = "mongodb://localhost:27017/"
DEFAULT_DATABASE = "sensorData"

_DUPLICATE_KEY = 11000

try:
    from pymongo import AsyncMongoClient
    from bson import ObjectId
    from pymongo.errors import BulkWriteError

    PYMONGO_AVAILABLE = True
except ImportError:
    PYMONGO_AVAILABLE = False


class MongoSink(Sink):
    """Insert datapoints into MongoDB, one ``insert_many`` per collection per batch.

    Parameters:
        uri: MongoDB connection string.
        database: Database name (default ``"sensorData"``).
        collection: Fixed collection name.  ``None`` routes each record to
                    the collection named after its ``org_id``.
        ordered: Passed to ``insert_many``; ordered inserts stop at the
                 first failing document.
        ping: Issue a ``ping`` on ``connect()`` so a bad URI fails before
              any data is generated.
        batch_size / **kwargs: Forwarded to :class:`Sink`.
    """

    def __init__(
        self,
        *,
        uri: str = DEFAULT_URI,
        database: str = DEFAULT_DATABASE,
        collection: str | None = None,
        ordered: bool = True,
        ping: bool = True,
        batch_size: int = DEFAULT_BATCH_SIZE,
        **kwargs: Any,
    ) -> None:
        if not PYMONGO_AVAILABLE:
            raise ImportError("pymongo is required for MongoSink.  Install with: pip install sensor-datagen[mongo]")
        super().__init__(batch_size=batch_size, **kwargs)
        self._uri = uri
        self._database_name = database
        self._collection = collection
        self._ordered = ordered
        self._ping = ping
        self._client: Any = None
        self._db: Any = None
        self._pending_batch: list[Datapoint] | None = None
        self._pending: dict[str, list[dict[str, Any]]] = {}

    async def connect(self) -> None:
        self._client = AsyncMongoClient(self._uri, tz_aware=True)
        self._db = self._client[self._database_name]
        if self._ping:
            await self._client.admin.command("ping")
        logger.info("MongoSink connected to %s (database=%s)", self._uri, self._database_name)

    async def write(self, records: list[Datapoint]) -> None:
        """Insert *records*; a retry of the same batch resends the same ``_id`` values.

        Documents get their ``_id`` when a batch is first seen.  If an
        earlier attempt stored part of the batch, the repeated documents
        fail with duplicate-key errors, which are skipped.
        """
        if self._db is None:
            raise RuntimeError("MongoSink is not connected")

        if records is not self._pending_batch:
            self._pending_batch = records
            self._pending = self._group(records)

        for name in list(self._pending):
            await self._insert(name, self._pending[name])
            del self._pending[name]
        self._pending_batch = None

    def _group(self, records: list[Datapoint]) -> dict[str, list[dict[str, Any]]]:
        by_collection: dict[str, list[dict[str, Any]]] = defaultdict(list)
        for rec in records:
            doc = rec.to_document()
            doc["_id"] = ObjectId()
            by_collection[self._collection or rec.org_id].append(doc)
        return dict(by_collection)

    async def _insert(self, name: str, docs: list[dict[str, Any]]) -> None:
        coll = self._db[name]
        while docs:
            try:
                result = await coll.insert_many(docs, ordered=self._ordered)
            except BulkWriteError as exc:
                errors = exc.details.get("writeErrors", [])
                if not errors or any(err.get("code") != _DUPLICATE_KEY for err in errors):
                    raise
                logger.debug("Skipped %d documents already stored in %s.%s", len(errors), self._database_name, name)
                if not self._ordered:
                    return
                # ordered inserts stop at the duplicate; continue after it
                docs = docs[errors[-1]["index"] + 1 :]
            else:
                logger.debug("Inserted %d documents into %s.%s", len(result.inserted_ids), self._database_name, name)
                return

    async def flush(self) -> None:
        """No-op - each write() is acknowledged by the server."""

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
            self._db = None
            logger.info("MongoSink closed")
