"""
Assist - RetrievalAugmenter
===========================
Obtains ranked context for a query vector from the knowledge store.

Ranking (count and similarity metric) belongs entirely to the store; the
augmenter only extracts each entry's text, preserving the store's order.
An empty result is a valid, empty context.
"""

from __future__ import annotations

import time

from assist.config.settings import settings
from assist.src.core.errors import StoreError
from assist.src.core.models import EmbeddingVector, RetrievedContext
from assist.src.core.protocols import KnowledgeStore
from assist.src.utils.logger import get_logger

logger = get_logger(__name__)


class RetrievalAugmenter:
    """
    Parameters
    ----------
    store
        A ``KnowledgeStore`` exposing ``query(vector)``.
    degrade_on_failure
        When true, a ``StoreError`` during search is logged and an empty
        context is returned instead.  Defaults to
        ``settings.RETRIEVAL_FAILURE_POLICY == "degrade"``.
    """

    __slots__ = ("_store", "_degrade_on_failure")

    def __init__(self, store: KnowledgeStore, degrade_on_failure: bool | None = None) -> None:
        self._store = store
        if degrade_on_failure is None:
            degrade_on_failure = settings.RETRIEVAL_FAILURE_POLICY == "degrade"
        self._degrade_on_failure = degrade_on_failure


    async def augment(self, query_vector: EmbeddingVector) -> RetrievedContext:
        t_search = time.perf_counter()
        try:
            entries = await self._store.query(query_vector)
        except StoreError as exc:
            if not self._degrade_on_failure:
                raise
            logger.warning("[RETRIEVAL] Search failed (%s); continuing without context.", exc)
            return ()

        fragments: RetrievedContext = tuple(entry.text for entry in entries)
        search_ms = (time.perf_counter() - t_search) * 1000
        if not fragments:
            logger.warning("[RETRIEVAL] No stored entries matched the query.")
        logger.info("[RETRIEVAL] %d context fragment(s) in %.1fms", len(fragments), search_ms)
        return fragments
