"""
Assist - Google Gemini Clients
==============================
``ModelClient`` and ``EmbeddingClient`` implementations through
``langchain-google-genai``.

The rendered envelope is sent verbatim as a single human message; the
envelope's options map onto ``temperature``, ``max_output_tokens`` and
``stop``.  A chat model is built per call because options differ per call
site.
"""

from __future__ import annotations

from typing import AsyncIterator

from assist.config.settings import settings
from assist.src.core.errors import BackendError, ConfigurationError, MalformedResponseError
from assist.src.core.models import Completion, CompletionChunk, EmbeddingVector, PromptEnvelope
from assist.src.utils.logger import get_logger

logger = get_logger(__name__)


def _api_key() -> str:
    if settings.GOOGLE_API_KEY is None:
        raise ConfigurationError("GOOGLE_API_KEY is not configured")
    return settings.GOOGLE_API_KEY.get_secret_value()


def _content_text(message: object, model: str) -> str:
    content = getattr(message, "content", None)
    if not isinstance(content, str):
        raise MalformedResponseError(f"{model} returned {type(content).__name__} content, expected text")
    return content


class GeminiModelClient:
    """Gemini chat model driven with the pre-rendered envelope text."""

    __slots__ = ("_model", "_api_key")

    def __init__(self, model: str | None = None, api_key: str | None = None) -> None:
        self._model = model or settings.GEMINI_LLM_MODEL
        self._api_key = api_key or _api_key()
        logger.info("[GEMINI] Model client ready: %s", self._model)


    def _llm(self, envelope: PromptEnvelope) -> object:
        from langchain_google_genai import ChatGoogleGenerativeAI

        options = envelope.options
        return ChatGoogleGenerativeAI(model=self._model, temperature=options.temperature, max_output_tokens=options.max_tokens, google_api_key=self._api_key)


    @staticmethod
    def _messages(envelope: PromptEnvelope) -> list[object]:
        from langchain_core.messages import HumanMessage

        return [HumanMessage(content=envelope.rendered_text)]


    @staticmethod
    def _stop(envelope: PromptEnvelope) -> list[str] | None:
        return list(envelope.options.stop_sequences) or None


    async def complete(self, envelope: PromptEnvelope) -> Completion:
        llm = self._llm(envelope)
        try:
            response = await llm.ainvoke(self._messages(envelope), stop=self._stop(envelope))  # type: ignore[attr-defined]
        except Exception as exc:
            logger.error("[GEMINI] ainvoke(%s) failed: %s", self._model, exc)
            raise BackendError(f"Gemini invocation of {self._model} failed: {exc}") from exc
        return Completion(full_text=_content_text(response, self._model))


    async def stream(self, envelope: PromptEnvelope) -> AsyncIterator[CompletionChunk]:
        llm = self._llm(envelope)
        chunks = llm.astream(self._messages(envelope), stop=self._stop(envelope))  # type: ignore[attr-defined]
        try:
            while True:
                try:
                    chunk = await chunks.__anext__()
                except StopAsyncIteration:
                    return
                except Exception as exc:
                    raise BackendError(f"Gemini stream of {self._model} failed: {exc}") from exc
                yield CompletionChunk(delta_text=_content_text(chunk, self._model))
        finally:
            await chunks.aclose()


class GeminiEmbeddingClient:
    __slots__ = ("_model", "_embeddings")

    def __init__(self, model: str | None = None, api_key: str | None = None) -> None:
        from langchain_google_genai import GoogleGenerativeAIEmbeddings

        self._model = model or settings.GEMINI_EMBEDDING_MODEL
        self._embeddings = GoogleGenerativeAIEmbeddings(model=self._model, google_api_key=api_key or _api_key())


    async def embed(self, text: str) -> EmbeddingVector:
        try:
            vector = await self._embeddings.aembed_query(text)
        except Exception as exc:
            logger.error("[GEMINI] Embedding with %s failed: %s", self._model, exc)
            raise BackendError(f"Gemini embedding with {self._model} failed: {exc}") from exc
        if not isinstance(vector, list) or not vector:
            raise MalformedResponseError(f"{self._model} returned no embedding")
        return tuple(float(v) for v in vector)
