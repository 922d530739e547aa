"""
Assist - Orchestrator
=====================
Top-level coordinator exposing the three gateway use cases.

``complete(prompt)``
    envelope (no context, per mode) → dispatch → text.
``embed_and_store(prompt)``
    embed question → ``KnowledgeEntry`` → ``store.save`` → confirmation.
``retrieve_and_complete(prompt)``
    embed question → ``RetrievalAugmenter`` → envelope with context
    (temperature 0) → streaming dispatch → text.

Dispatch
--------
``ResponseMode.BLOCKING`` awaits ``ModelClient.complete`` on the caller's
task.  ``ResponseMode.STREAMING`` hands ``ModelClient.stream`` to a fresh
``StreamAggregator`` with live forwarding to the configured sink.

The orchestrator holds no request-scoped state, so one instance can serve
concurrent requests.

Usage:
    orchestrator = Orchestrator(model_client, embedding_client, store)
    answer = await orchestrator.complete(Prompt(question="Hi", responseType="async"))
"""

from __future__ import annotations

import time
from typing import Literal

from assist.config.prompt_templates import EMBEDDINGS_SAVED_CONFIRMATION
from assist.config.settings import settings
from assist.src.core.aggregator import LiveSink, StreamAggregator, stdout_sink
from assist.src.core.envelope import PromptEnvelopeBuilder
from assist.src.core.errors import StoreError, StreamError
from assist.src.core.models import Completion, KnowledgeEntry, Prompt, PromptEnvelope, ResponseMode
from assist.src.core.protocols import EmbeddingClient, KnowledgeStore, ModelClient
from assist.src.core.retrieval import RetrievalAugmenter
from assist.src.utils.logger import get_logger

logger = get_logger(__name__)

StreamErrorPolicy = Literal["partial", "raise"]

_UNSET = object()


class Orchestrator:
    """
    Parameters
    ----------
    model_client
        ``ModelClient`` used for blocking and streaming completions.
    embedding_client
        ``EmbeddingClient`` used to embed questions.
    store
        ``KnowledgeStore`` for persistence and similarity search.
    sink
        Live sink for streamed deltas.  Defaults to a stdout echo when
        ``settings.STREAM_ECHO`` is true; pass ``None`` to disable.
    builder, augmenter
        Optional custom collaborators.
    stream_timeout
        Overrides ``settings.STREAM_TIMEOUT_SECONDS``.
    stream_error_policy
        Overrides ``settings.STREAM_ERROR_POLICY``.
    """

    __slots__ = ("_model", "_embedder", "_store", "_sink", "_builder", "_augmenter", "_stream_timeout", "_stream_error_policy")

    def __init__(self, model_client: ModelClient, embedding_client: EmbeddingClient, store: KnowledgeStore, *, sink: LiveSink | None | object = _UNSET, builder: PromptEnvelopeBuilder | None = None, augmenter: RetrievalAugmenter | None = None, stream_timeout: float | None = None, stream_error_policy: StreamErrorPolicy | None = None) -> None:
        self._model = model_client
        self._embedder = embedding_client
        self._store = store
        if sink is _UNSET:
            sink = stdout_sink if settings.STREAM_ECHO else None
        self._sink: LiveSink | None = sink  # type: ignore[assignment]
        self._builder = builder or PromptEnvelopeBuilder()
        self._augmenter = augmenter or RetrievalAugmenter(store)
        self._stream_timeout = stream_timeout
        self._stream_error_policy: StreamErrorPolicy = stream_error_policy or settings.STREAM_ERROR_POLICY

    # ══════════════════════════════════════════════════════════════════
    #  USE CASES
    # ══════════════════════════════════════════════════════════════════

    async def complete(self, prompt: Prompt) -> str:
        """Answer ``prompt.question`` directly, in the prompt's response mode."""
        envelope = self._builder.build(prompt.question, mode=prompt.response_mode)
        completion = await self._dispatch(envelope, prompt.response_mode)
        return completion.full_text


    async def embed_and_store(self, prompt: Prompt) -> str:
        """Embed ``prompt.question`` and persist it as a ``KnowledgeEntry``."""
        t_start = time.perf_counter()
        vector = await self._embedder.embed(prompt.question)
        entry = KnowledgeEntry(text=prompt.question, vector=vector)

        saved = await self._store.save(entry)
        if not saved:
            raise StoreError("Knowledge store did not acknowledge the entry")

        logger.info("[ORCH] Stored entry (%d dims, %d chars) in %.1fms", len(entry.vector), len(entry.text), (time.perf_counter() - t_start) * 1000)
        return EMBEDDINGS_SAVED_CONFIRMATION


    async def retrieve_and_complete(self, prompt: Prompt) -> str:
        """
        Answer ``prompt.question`` grounded in stored knowledge.

        Always streams, whatever ``prompt.response_mode`` says.
        """
        t_start = time.perf_counter()

        vector = await self._embedder.embed(prompt.question)
        embed_ms = (time.perf_counter() - t_start) * 1000

        fragments = await self._augmenter.augment(vector)
        envelope = self._builder.build(prompt.question, fragments)
        logger.debug("[ORCH] Augmented envelope:\n%s", envelope.rendered_text)

        completion = await self._dispatch(envelope, ResponseMode.STREAMING)

        total_ms = (time.perf_counter() - t_start) * 1000
        logger.info("[ORCH] RAG total: %.1fms (embed=%.1f, fragments=%d)", total_ms, embed_ms, len(fragments))
        return completion.full_text

    # ══════════════════════════════════════════════════════════════════
    #  DISPATCH
    # ══════════════════════════════════════════════════════════════════

    async def _dispatch(self, envelope: PromptEnvelope, mode: ResponseMode) -> Completion:
        t_llm = time.perf_counter()

        if mode is ResponseMode.BLOCKING:
            completion = await self._model.complete(envelope)
            logger.info("[ORCH] Blocking completion: %d chars in %.1fms", len(completion.full_text), (time.perf_counter() - t_llm) * 1000)
            return completion

        aggregator = StreamAggregator(sink=self._sink, timeout=self._stream_timeout)
        completion = await aggregator.aggregate(self._model.stream(envelope))

        if completion.error is not None:
            if completion.chunk_count == 0:
                # Nothing was delivered, so the stream never started.
                logger.error("[ORCH] Stream failed before its first chunk: %s", completion.error)
                raise completion.error
            if self._stream_error_policy == "raise":
                raise StreamError(f"Stream failed: {completion.error}", partial_text=completion.full_text) from completion.error
            logger.warning("[ORCH] Returning partial completion (%d chars) after stream error.", len(completion.full_text))

        return completion
