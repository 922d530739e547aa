"""
Assist - MongoKnowledgeStore
============================
Async ``KnowledgeStore`` backed by MongoDB Atlas via ``motor``.

Collection schema (``knowledge_base``)::

    {
        "text_data": str,
        "vector_data": [float, ...],
        "created_at": datetime
    }

Similarity search uses an Atlas ``$vectorSearch`` stage on ``vector_data``;
the index (``settings.MONGO_VECTOR_INDEX``) must exist on the Atlas side.
Result count and candidate pool are configuration, not core logic.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone

import motor.motor_asyncio
from pymongo.errors import PyMongoError

from assist.config.settings import settings
from assist.src.core.errors import StoreError
from assist.src.core.models import EmbeddingVector, KnowledgeEntry
from assist.src.utils.logger import get_logger

logger = get_logger(__name__)

_mongo_client: motor.motor_asyncio.AsyncIOMotorClient | None = None


def _get_mongo_client() -> motor.motor_asyncio.AsyncIOMotorClient:
    """Return (or create) the module-level async MongoDB client."""
    global _mongo_client
    if _mongo_client is None:
        if settings.MONGO_URI is None:
            raise StoreError("MONGO_URI is not configured")
        _mongo_client = motor.motor_asyncio.AsyncIOMotorClient(settings.MONGO_URI.get_secret_value())
        logger.info("MongoDB async client created (singleton).")
    return _mongo_client


class MongoKnowledgeStore:
    """
    Parameters
    ----------
    collection
        Pre-built motor collection (injected in tests).  Defaults to
        ``settings.MONGO_DB_NAME`` / ``settings.MONGO_COLLECTION``.
    index_name, limit, num_candidates
        ``$vectorSearch`` parameters; default to the matching settings.
    """

    __slots__ = ("_collection", "_index_name", "_limit", "_num_candidates")

    def __init__(self, collection: object | None = None, index_name: str | None = None, limit: int | None = None, num_candidates: int | None = None) -> None:
        if collection is None:
            collection = _get_mongo_client()[settings.MONGO_DB_NAME][settings.MONGO_COLLECTION]
        self._collection = collection
        self._index_name = index_name or settings.MONGO_VECTOR_INDEX
        self._limit = limit or settings.VECTOR_SEARCH_LIMIT
        self._num_candidates = num_candidates or settings.VECTOR_SEARCH_CANDIDATES


    async def save(self, entry: KnowledgeEntry) -> bool:
        """Insert one entry.  Returns the write acknowledgement."""
        document = {**entry.to_document(), "created_at": datetime.now(timezone.utc)}
        try:
            result = await self._collection.insert_one(document)  # type: ignore[attr-defined]
        except PyMongoError as exc:
            logger.error("[STORE] insert_one failed: %s", exc)
            raise StoreError(f"Failed to save knowledge entry: {exc}") from exc
        logger.info("[STORE] Saved entry %s", result.inserted_id)
        return bool(result.acknowledged)


    def _pipeline(self, vector: EmbeddingVector) -> list[dict]:
        return [
            {"$vectorSearch": {"index": self._index_name, "path": "vector_data", "queryVector": list(vector), "numCandidates": self._num_candidates, "limit": self._limit}},
            {"$project": {"_id": 0, "text_data": 1, "vector_data": 1, "score": {"$meta": "vectorSearchScore"}}},
        ]


    async def query(self, vector: EmbeddingVector) -> list[KnowledgeEntry]:
        """Return the nearest entries, best match first."""
        t_search = time.perf_counter()
        try:
            cursor = self._collection.aggregate(self._pipeline(vector))  # type: ignore[attr-defined]
            documents = await cursor.to_list(length=self._limit)
        except PyMongoError as exc:
            logger.error("[STORE] $vectorSearch failed: %s", exc)
            raise StoreError(f"Vector search failed: {exc}") from exc

        entries = [KnowledgeEntry.from_document(doc) for doc in documents if isinstance(doc.get("text_data"), str)]
        logger.info("[STORE] $vectorSearch returned %d entr(ies) in %.1fms", len(entries), (time.perf_counter() - t_search) * 1000)
        return entries
