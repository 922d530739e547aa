"""Gemini client tests with LangChain classes patched out."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from assist.src.clients.gemini import GeminiEmbeddingClient, GeminiModelClient
from assist.src.core.envelope import PromptEnvelopeBuilder
from assist.src.core.errors import BackendError, MalformedResponseError
from assist.src.core.models import ResponseMode


def _message(content):
    return SimpleNamespace(content=content)


class TestGeminiModelClient:

    def setup_method(self):
        self.client = GeminiModelClient(model="gemini-2.0-flash", api_key="test-key")
        self.builder = PromptEnvelopeBuilder()

    @pytest.mark.asyncio
    async def test_complete_maps_envelope_options(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=_message("4"))

        with patch("langchain_google_genai.ChatGoogleGenerativeAI", return_value=llm) as chat_cls:
            completion = await self.client.complete(self.builder.build("What is 2+2?"))

        assert completion.full_text == "4"
        kwargs = chat_cls.call_args.kwargs
        assert kwargs["temperature"] == 0.5
        assert kwargs["max_output_tokens"] == 200
        messages = llm.ainvoke.call_args.args[0]
        assert messages[0].content == "\n\nHuman: What is 2+2?\n\nAssistant:"
        assert llm.ainvoke.call_args.kwargs["stop"] == ["\n\nHuman:"]

    @pytest.mark.asyncio
    async def test_complete_backend_failure(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=RuntimeError("quota"))

        with patch("langchain_google_genai.ChatGoogleGenerativeAI", return_value=llm):
            with pytest.raises(BackendError, match="quota"):
                await self.client.complete(self.builder.build("q"))

    @pytest.mark.asyncio
    async def test_complete_non_text_content(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=_message(None))

        with patch("langchain_google_genai.ChatGoogleGenerativeAI", return_value=llm):
            with pytest.raises(MalformedResponseError):
                await self.client.complete(self.builder.build("q"))

    @pytest.mark.asyncio
    async def test_stream_yields_deltas(self):
        async def astream(messages, stop=None):
            for text in ("Par", "is."):
                yield _message(text)

        llm = MagicMock()
        llm.astream = astream

        with patch("langchain_google_genai.ChatGoogleGenerativeAI", return_value=llm):
            deltas = [chunk.delta_text async for chunk in self.client.stream(self.builder.build("q", ["ctx"]))]

        assert deltas == ["Par", "is."]

    @pytest.mark.asyncio
    async def test_stream_failure_becomes_backend_error(self):
        async def astream(messages, stop=None):
            yield _message("C1")
            raise RuntimeError("disconnected")

        llm = MagicMock()
        llm.astream = astream

        received = []
        with patch("langchain_google_genai.ChatGoogleGenerativeAI", return_value=llm):
            with pytest.raises(BackendError, match="disconnected"):
                async for chunk in self.client.stream(self.builder.build("q", mode=ResponseMode.STREAMING)):
                    received.append(chunk.delta_text)

        assert received == ["C1"]


class TestGeminiEmbeddingClient:

    @pytest.mark.asyncio
    async def test_embed_returns_tuple(self):
        embeddings = MagicMock()
        embeddings.aembed_query = AsyncMock(return_value=[0.1, 0.2])

        with patch("langchain_google_genai.GoogleGenerativeAIEmbeddings", return_value=embeddings):
            client = GeminiEmbeddingClient(model="gemini-embedding-001", api_key="test-key")
            vector = await client.embed("Paris")

        assert vector == (0.1, 0.2)
        embeddings.aembed_query.assert_awaited_once_with("Paris")

    @pytest.mark.asyncio
    async def test_embed_failure(self):
        embeddings = MagicMock()
        embeddings.aembed_query = AsyncMock(side_effect=RuntimeError("invalid key"))

        with patch("langchain_google_genai.GoogleGenerativeAIEmbeddings", return_value=embeddings):
            client = GeminiEmbeddingClient(api_key="test-key")
            with pytest.raises(BackendError):
                await client.embed("Paris")
