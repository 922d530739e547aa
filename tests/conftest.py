import os

# settings is a module-level singleton; seed the environment before any
# assist module is imported.
os.environ.setdefault("MONGO_URI", "mongodb://localhost:27017")
os.environ.setdefault("MODEL_PROVIDER", "bedrock")
os.environ.setdefault("STORE_BACKEND", "mongo")
os.environ.setdefault("STREAM_ECHO", "false")
os.environ.setdefault("ENV", "prod")

import pytest

from assist.src.core.models import Completion, CompletionChunk, KnowledgeEntry


class StubModelClient:
    """ModelClient returning canned text and recording every envelope."""

    def __init__(self, full_text="", chunks=(), error=None, delay=0.0):
        self.full_text = full_text
        self.chunks = list(chunks)
        self.error = error
        self.delay = delay
        self.envelopes = []
        self.closed = False

    async def complete(self, envelope):
        self.envelopes.append(envelope)
        return Completion(full_text=self.full_text)

    async def stream(self, envelope):
        import asyncio

        self.envelopes.append(envelope)
        try:
            for delta in self.chunks:
                if self.delay:
                    await asyncio.sleep(self.delay)
                yield CompletionChunk(delta_text=delta)
            if self.error is not None:
                raise self.error
        finally:
            self.closed = True


class StubEmbeddingClient:
    def __init__(self, vector=(0.1, 0.2)):
        self.vector = tuple(vector)
        self.texts = []

    async def embed(self, text):
        self.texts.append(text)
        return self.vector


class StubStore:
    def __init__(self, results=(), acknowledged=True, query_error=None):
        self.results = [KnowledgeEntry(text=t, vector=(0.0,)) for t in results]
        self.acknowledged = acknowledged
        self.query_error = query_error
        self.saved = []
        self.queries = []

    async def save(self, entry):
        self.saved.append(entry)
        return self.acknowledged

    async def query(self, vector):
        self.queries.append(vector)
        if self.query_error is not None:
            raise self.query_error
        return list(self.results)


@pytest.fixture
def embedding_client():
    return StubEmbeddingClient()


@pytest.fixture
def captured():
    """Capturing live sink: returns (sink, deltas)."""
    deltas = []
    return deltas.append, deltas
