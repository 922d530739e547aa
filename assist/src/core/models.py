"""
Assist - Data Model
===================
Immutable value types flowing through the gateway.

``Prompt`` is what a caller hands in, ``PromptEnvelope`` is what the model
backend receives, ``CompletionChunk``/``Completion`` are what comes back, and
``KnowledgeEntry`` is the unit persisted by the knowledge store.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# ── Type aliases ───────────────────────────────────────────────────────
EmbeddingVector = tuple[float, ...]
RetrievedContext = tuple[str, ...]
KnowledgeDocument = dict[str, str | list[float]]


class ResponseMode(str, Enum):
    """How the completion is delivered; values are the caller's ``responseType``."""

    BLOCKING = "sync"
    STREAMING = "async"


class Prompt(BaseModel):
    """A caller request: a question plus the desired response mode."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    question: str
    response_mode: ResponseMode = Field(default=ResponseMode.BLOCKING, alias="responseType")


class GenerationOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_tokens: int = Field(gt=0)
    temperature: float = Field(ge=0.0, le=1.0)
    stop_sequences: tuple[str, ...] = ()


class PromptEnvelope(BaseModel):
    """Fully rendered model input plus the options it must be sent with."""

    model_config = ConfigDict(frozen=True)

    rendered_text: str
    options: GenerationOptions


class CompletionChunk(BaseModel):
    model_config = ConfigDict(frozen=True)

    delta_text: str


class Completion(BaseModel):
    """
    Terminal result of a blocking or streamed invocation.

    ``error`` is set only when a stream failed; ``full_text`` then holds
    everything accumulated before the failure.  ``chunk_count`` is the number
    of deltas applied, so a failure before the first chunk reads as 0.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    full_text: str
    error: Exception | None = None
    chunk_count: int = 0

    @property
    def partial(self) -> bool:
        return self.error is not None


class KnowledgeEntry(BaseModel):
    """A stored text together with its embedding."""

    model_config = ConfigDict(frozen=True)

    text: str
    vector: EmbeddingVector

    def to_document(self) -> KnowledgeDocument:
        """Serialise to the ``knowledge_base`` collection layout."""
        return {"text_data": self.text, "vector_data": list(self.vector)}

    @classmethod
    def from_document(cls, document: dict) -> KnowledgeEntry:
        return cls(text=document["text_data"], vector=document.get("vector_data") or ())
