"""
Assist - Collaborator Protocols
===============================
Structural types for the three collaborators the orchestration core drives.
Concrete implementations live in ``assist.src.clients`` and
``assist.src.database``; tests substitute plain stubs.
"""

from __future__ import annotations

from typing import AsyncIterator, Protocol, runtime_checkable

from assist.src.core.models import Completion, CompletionChunk, EmbeddingVector, KnowledgeEntry, PromptEnvelope


@runtime_checkable
class ModelClient(Protocol):
    """Blocking and streaming text generation against the model backend."""

    async def complete(self, envelope: PromptEnvelope) -> Completion: ...

    def stream(self, envelope: PromptEnvelope) -> AsyncIterator[CompletionChunk]: ...


@runtime_checkable
class EmbeddingClient(Protocol):
    """Anything that can turn text into an embedding vector."""

    async def embed(self, text: str) -> EmbeddingVector: ...


@runtime_checkable
class KnowledgeStore(Protocol):
    """Persistence plus similarity search over ``KnowledgeEntry`` rows."""

    async def save(self, entry: KnowledgeEntry) -> bool: ...

    async def query(self, vector: EmbeddingVector) -> list[KnowledgeEntry]: ...
