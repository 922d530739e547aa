"""
Assist - Amazon Bedrock Clients
===============================
``ModelClient`` and ``EmbeddingClient`` implementations over the
``bedrock-runtime`` API.

Wire formats
------------
Claude v2 text completions::

    request  {"prompt", "max_tokens_to_sample", "temperature", "stop_sequences"?}
    response {"completion": str, ...}
    stream   each chunk's bytes decode to {"completion": str, ...}

Titan text embeddings::

    request  {"inputText": str}
    response {"embedding": [float, ...], ...}

``boto3`` is synchronous, so every call runs in a worker thread via
``asyncio.to_thread``.  A response stream gets its own single reader thread
for every ``next()`` and for the final ``close()``.

Usage:
    model = BedrockModelClient()
    completion = await model.complete(envelope)
    async for chunk in model.stream(envelope):
        ...
"""

from __future__ import annotations

import asyncio
import json
from concurrent.futures import ThreadPoolExecutor
from typing import AsyncIterator

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from assist.config.settings import settings
from assist.src.core.errors import BackendError, MalformedResponseError
from assist.src.core.models import Completion, CompletionChunk, EmbeddingVector, PromptEnvelope
from assist.src.utils.logger import get_logger

logger = get_logger(__name__)

_CONTENT_TYPE = "application/json"

# Non-chunk members of a Bedrock response stream event
_STREAM_ERROR_EVENTS = ("internalServerException", "modelStreamErrorException", "validationException", "throttlingException", "modelTimeoutException", "serviceUnavailableException")


def _runtime_client(region: str | None) -> object:
    return boto3.client("bedrock-runtime", region_name=region or settings.AWS_REGION)


def _decode(raw: bytes | str, model_id: str) -> dict:
    """Decode a JSON response body, mapping garbage to ``MalformedResponseError``."""
    try:
        body = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedResponseError(f"{model_id} returned a non-JSON body") from exc
    if not isinstance(body, dict):
        raise MalformedResponseError(f"{model_id} returned {type(body).__name__}, expected an object")
    return body


def _invoke_json(client: object, model_id: str, payload: dict) -> dict:
    """Blocking ``invoke_model`` call returning the decoded JSON body."""
    try:
        response = client.invoke_model(modelId=model_id, body=json.dumps(payload), contentType=_CONTENT_TYPE, accept=_CONTENT_TYPE)  # type: ignore[attr-defined]
        raw = response["body"].read()
    except (BotoCoreError, ClientError) as exc:
        logger.error("[BEDROCK] invoke_model(%s) failed: %s", model_id, exc)
        raise BackendError(f"Bedrock invocation of {model_id} failed: {exc}") from exc
    return _decode(raw, model_id)


def _completion_text(body: dict, model_id: str) -> str:
    text = body.get("completion")
    if not isinstance(text, str):
        raise MalformedResponseError(f"{model_id} response has no string 'completion' field")
    return text


class BedrockModelClient:
    """
    Claude text-completion client.

    Parameters
    ----------
    model_id
        Defaults to ``settings.LLM_MODEL``.
    region
        Defaults to ``settings.AWS_REGION``.
    client
        Pre-built ``bedrock-runtime`` client (injected in tests).
    """

    __slots__ = ("_client", "_model_id")

    def __init__(self, model_id: str | None = None, region: str | None = None, client: object | None = None) -> None:
        self._model_id = model_id or settings.LLM_MODEL
        self._client = client or _runtime_client(region)
        logger.info("[BEDROCK] Model client ready: %s", self._model_id)


    @staticmethod
    def _payload(envelope: PromptEnvelope) -> dict:
        options = envelope.options
        payload: dict = {"prompt": envelope.rendered_text, "max_tokens_to_sample": options.max_tokens, "temperature": options.temperature}
        if options.stop_sequences:
            payload["stop_sequences"] = list(options.stop_sequences)
        return payload


    async def complete(self, envelope: PromptEnvelope) -> Completion:
        body = await asyncio.to_thread(_invoke_json, self._client, self._model_id, self._payload(envelope))
        return Completion(full_text=_completion_text(body, self._model_id))


    async def stream(self, envelope: PromptEnvelope) -> AsyncIterator[CompletionChunk]:
        try:
            response = await asyncio.to_thread(self._client.invoke_model_with_response_stream, modelId=self._model_id, body=json.dumps(self._payload(envelope)), contentType=_CONTENT_TYPE, accept=_CONTENT_TYPE)  # type: ignore[attr-defined]
        except (BotoCoreError, ClientError) as exc:
            logger.error("[BEDROCK] Stream open (%s) failed: %s", self._model_id, exc)
            raise BackendError(f"Bedrock stream of {self._model_id} failed: {exc}") from exc

        event_stream = response["body"]
        events = iter(event_stream)
        # One reader thread per stream: reads and the final close run on it
        # in order, so close never overlaps an in-flight read.
        reader = ThreadPoolExecutor(max_workers=1, thread_name_prefix="bedrock-stream")
        loop = asyncio.get_running_loop()
        reading = False
        try:
            while True:
                reading = True
                try:
                    event = await loop.run_in_executor(reader, next, events, None)
                except (BotoCoreError, ClientError) as exc:
                    reading = False
                    raise BackendError(f"Bedrock stream of {self._model_id} failed: {exc}") from exc
                reading = False
                if event is None:
                    return

                if "chunk" in event:
                    body = _decode(event["chunk"]["bytes"], self._model_id)
                    yield CompletionChunk(delta_text=_completion_text(body, self._model_id))
                    continue

                for name in _STREAM_ERROR_EVENTS:
                    if name in event:
                        message = event[name].get("message", name) if isinstance(event[name], dict) else name
                        raise BackendError(f"Bedrock stream of {self._model_id} failed: {message}")
                logger.debug("[BEDROCK] Ignoring stream event %s", list(event))
        finally:
            close = getattr(event_stream, "close", None)
            closing = reader.submit(close) if close is not None else None
            reader.shutdown(wait=False)
            # A cancelled read may still be blocked; its close runs once it returns.
            if closing is not None and not reading:
                await asyncio.wrap_future(closing)


class BedrockEmbeddingClient:
    """Titan text-embedding client."""

    __slots__ = ("_client", "_model_id")

    def __init__(self, model_id: str | None = None, region: str | None = None, client: object | None = None) -> None:
        self._model_id = model_id or settings.EMBEDDING_MODEL
        self._client = client or _runtime_client(region)


    async def embed(self, text: str) -> EmbeddingVector:
        body = await asyncio.to_thread(_invoke_json, self._client, self._model_id, {"inputText": text})

        embedding = body.get("embedding")
        if not isinstance(embedding, list) or not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in embedding):
            raise MalformedResponseError(f"{self._model_id} response has no numeric 'embedding' array")

        logger.debug("[BEDROCK] Embedded %d chars → %d dims", len(text), len(embedding))
        return tuple(float(v) for v in embedding)
