"""
Assist - LanceKnowledgeStore
============================
Embedded ``KnowledgeStore`` over a LanceDB table, for running without a
MongoDB Atlas cluster.

Design decisions:
  • **Singleton DB connection**: ``_get_connection()`` caches one
    ``lancedb.DBConnection`` per path to avoid file-lock issues.
  • **Fixed-size vectors**: the schema pins ``settings.EMBEDDING_DIMENSION``
    so LanceDB recognises ``vector`` as the search column.
  • **Async facade**: LanceDB is synchronous; ``save``/``query`` run it in
    a worker thread.

Usage:
    store = LanceKnowledgeStore()
    await store.save(KnowledgeEntry(text="...", vector=vec))
    entries = await store.query(vec)
"""

from __future__ import annotations

import asyncio
import threading

import lancedb
import pyarrow as pa

from assist.config.settings import settings
from assist.src.core.errors import StoreError
from assist.src.core.models import EmbeddingVector, KnowledgeEntry
from assist.src.utils.logger import get_logger

logger = get_logger(__name__)

_DB_LOCK = threading.Lock()
_db_connection_cache: dict[str, lancedb.DBConnection] = {}


def knowledge_schema(dimension: int) -> pa.Schema:
    return pa.schema([
        pa.field("vector", pa.list_(pa.float32(), dimension)),
        pa.field("text", pa.utf8()),
    ])


def _get_connection(db_path: str) -> lancedb.DBConnection:
    """Return a thread-safe **singleton** ``lancedb.DBConnection`` for *db_path*."""
    if db_path not in _db_connection_cache:
        with _DB_LOCK:
            if db_path not in _db_connection_cache:
                logger.info("Opening new LanceDB connection: %s", db_path)
                _db_connection_cache[db_path] = lancedb.connect(db_path)
    return _db_connection_cache[db_path]


class LanceKnowledgeStore:
    """
    Parameters
    ----------
    db_path
        Database directory.  Defaults to ``settings.LANCEDB_PATH``.
    table_name
        Defaults to ``settings.LANCEDB_TABLE_NAME``.
    dimension
        Vector length.  Defaults to ``settings.EMBEDDING_DIMENSION``.
    limit
        Results per query.  Defaults to ``settings.VECTOR_SEARCH_LIMIT``.
    """

    __slots__ = ("_db_path", "_table_name", "_dimension", "_limit", "table")

    def __init__(self, db_path: str | None = None, table_name: str | None = None, dimension: int | None = None, limit: int | None = None) -> None:
        self._db_path: str = str(db_path or settings.LANCEDB_PATH)
        self._table_name: str = table_name or settings.LANCEDB_TABLE_NAME
        self._dimension: int = dimension or settings.EMBEDDING_DIMENSION
        self._limit: int = limit or settings.VECTOR_SEARCH_LIMIT
        self.table = self._open_table()


    def _open_table(self) -> object:
        """Open the table, creating it with the knowledge schema when missing."""
        try:
            db = _get_connection(self._db_path)
            if self._table_name in db.table_names():
                table = db.open_table(self._table_name)
                logger.info("Opened existing table '%s' (%d rows).", self._table_name, table.count_rows())
            else:
                table = db.create_table(self._table_name, schema=knowledge_schema(self._dimension))
                logger.info("Created new table '%s' (dim=%d).", self._table_name, self._dimension)
        except OSError as exc:
            logger.error("LanceDB filesystem error at %s: %s", self._db_path, exc)
            raise StoreError(f"Cannot open LanceDB table '{self._table_name}': {exc}") from exc
        return table


    def _add(self, entry: KnowledgeEntry) -> None:
        if len(entry.vector) != self._dimension:
            raise StoreError(f"Vector has {len(entry.vector)} dims, table expects {self._dimension}")
        try:
            self.table.add([{"vector": list(entry.vector), "text": entry.text}])  # type: ignore[attr-defined]
        except (OSError, ValueError, RuntimeError) as exc:
            logger.error("[STORE] Failed to write entry to LanceDB: %s", exc)
            raise StoreError(f"Failed to save knowledge entry: {exc}") from exc


    def _search(self, vector: EmbeddingVector) -> list[KnowledgeEntry]:
        try:
            rows = self.table.search(list(vector)).limit(self._limit).to_list()  # type: ignore[attr-defined]
        except (OSError, ValueError, RuntimeError) as exc:
            logger.error("[STORE] LanceDB search failed: %s", exc)
            raise StoreError(f"Vector search failed: {exc}") from exc
        return [KnowledgeEntry(text=row["text"], vector=tuple(float(v) for v in row["vector"])) for row in rows]


    async def save(self, entry: KnowledgeEntry) -> bool:
        await asyncio.to_thread(self._add, entry)
        logger.info("[STORE] Saved entry to '%s'.", self._table_name)
        return True


    async def query(self, vector: EmbeddingVector) -> list[KnowledgeEntry]:
        entries = await asyncio.to_thread(self._search, vector)
        logger.info("[STORE] LanceDB search returned %d entr(ies).", len(entries))
        return entries


    def __repr__(self) -> str:
        return f"LanceKnowledgeStore(db='{self._db_path}', table='{self._table_name}')"
