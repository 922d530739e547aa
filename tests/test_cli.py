"""CLI wiring tests for ``assist.scripts.ask``."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from assist.scripts import ask
from assist.src.core.errors import ConfigurationError
from conftest import StubEmbeddingClient, StubModelClient, StubStore


class TestBuildComponents:

    def test_bedrock_with_mongo(self):
        settings = SimpleNamespace(MODEL_PROVIDER="bedrock", STORE_BACKEND="mongo")

        with patch("assist.src.clients.bedrock.BedrockModelClient") as model_cls, \
             patch("assist.src.clients.bedrock.BedrockEmbeddingClient") as embed_cls, \
             patch("assist.src.database.knowledge_store.MongoKnowledgeStore") as store_cls:
            model, embedder, store = ask.build_components(settings)

        assert model is model_cls.return_value
        assert embedder is embed_cls.return_value
        assert store is store_cls.return_value

    def test_gemini_with_lancedb(self):
        settings = SimpleNamespace(MODEL_PROVIDER="gemini", STORE_BACKEND="lancedb")

        with patch("assist.src.clients.gemini.GeminiModelClient") as model_cls, \
             patch("assist.src.clients.gemini.GeminiEmbeddingClient"), \
             patch("assist.src.database.vector_store.LanceKnowledgeStore") as store_cls:
            model, _, store = ask.build_components(settings)

        assert model is model_cls.return_value
        assert store is store_cls.return_value

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError):
            ask.build_components(SimpleNamespace(MODEL_PROVIDER="openai", STORE_BACKEND="mongo"))


class TestMain:

    def _run(self, argv, model=None, store=None):
        components = (model or StubModelClient(full_text="4"), StubEmbeddingClient(), store or StubStore())
        with patch.object(ask, "build_components", return_value=components):
            return ask.main(argv)

    def test_ask_blocking_prints_answer(self, capsys):
        assert self._run(["ask", "What is 2+2?"]) == 0

        assert capsys.readouterr().out.strip() == "4"

    def test_save_prints_confirmation(self, capsys):
        store = StubStore()

        assert self._run(["save", "Paris is the capital of France"], store=store) == 0

        assert "Embeddings saved to database" in capsys.readouterr().out
        assert store.saved[0].text == "Paris is the capital of France"

    def test_expert_streams(self, capsys):
        model = StubModelClient(chunks=["Par", "is."])

        assert self._run(["expert", "Capital of France?", "--quiet"], model=model, store=StubStore(results=["Paris is the capital of France"])) == 0

        assert capsys.readouterr().out.strip() == "Paris."

    def test_store_failure_exit_code(self):
        from assist.src.core.errors import StoreError

        store = StubStore(query_error=StoreError("down"))

        assert self._run(["expert", "q"], store=store) == 2
