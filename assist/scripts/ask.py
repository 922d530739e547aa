"""
Assist - Command-Line Gateway
=============================
CLI entry point that wires the configured backends into an ``Orchestrator``
and runs one use case:

    ask     Direct completion (blocking unless ``--stream``).
    save    Embed the text and store it in the knowledge base.
    expert  Retrieval-augmented completion (always streamed).

Backends are chosen by ``settings.MODEL_PROVIDER`` and
``settings.STORE_BACKEND``.

Usage:
    python -m assist.scripts.ask ask "What is 2+2?"
    python -m assist.scripts.ask ask "Tell me a story" --stream
    python -m assist.scripts.ask save "Paris is the capital of France"
    python -m assist.scripts.ask expert "What is the capital of France?"
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time

# ── CLI Argument Parsing ───────────────────────────────────────────────

def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="ask", description="Assist: query the model gateway.")
    parser.add_argument("command", choices=("ask", "save", "expert"), help="Use case to run.")
    parser.add_argument("question", help="Question or text to embed.")
    parser.add_argument("--stream", action="store_true", default=False, help="Stream the direct completion (ask only).")
    parser.add_argument("--quiet", action="store_true", default=False, help="Do not echo streamed deltas while they arrive.")
    return parser.parse_args(argv)


# ── Wiring ─────────────────────────────────────────────────────────────

def build_components(settings: object) -> tuple[object, object, object]:
    """Instantiate ``(model_client, embedding_client, store)`` for the configured backends."""
    from assist.src.core.errors import ConfigurationError

    provider = settings.MODEL_PROVIDER  # type: ignore[attr-defined]
    if provider == "bedrock":
        from assist.src.clients.bedrock import BedrockEmbeddingClient, BedrockModelClient

        model_client, embedding_client = BedrockModelClient(), BedrockEmbeddingClient()
    elif provider == "gemini":
        from assist.src.clients.gemini import GeminiEmbeddingClient, GeminiModelClient

        model_client, embedding_client = GeminiModelClient(), GeminiEmbeddingClient()
    else:
        raise ConfigurationError(f"Unknown MODEL_PROVIDER: {provider!r}")

    backend = settings.STORE_BACKEND  # type: ignore[attr-defined]
    if backend == "mongo":
        from assist.src.database.knowledge_store import MongoKnowledgeStore

        store = MongoKnowledgeStore()
    elif backend == "lancedb":
        from assist.src.database.vector_store import LanceKnowledgeStore

        store = LanceKnowledgeStore()
    else:
        raise ConfigurationError(f"Unknown STORE_BACKEND: {backend!r}")

    return model_client, embedding_client, store


async def run(args: argparse.Namespace, orchestrator: object) -> str:
    from assist.src.core.models import Prompt, ResponseMode

    mode = ResponseMode.STREAMING if args.stream else ResponseMode.BLOCKING
    prompt = Prompt(question=args.question, response_mode=mode)

    if args.command == "save":
        return await orchestrator.embed_and_store(prompt)  # type: ignore[attr-defined]
    if args.command == "expert":
        return await orchestrator.retrieve_and_complete(prompt)  # type: ignore[attr-defined]
    return await orchestrator.complete(prompt)  # type: ignore[attr-defined]


# ── Main Orchestration ─────────────────────────────────────────────────

def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    t_start = time.perf_counter()

    try:
        from assist.config.settings import settings
    except Exception as exc:
        print("\n[FATAL] Configuration error, check your .env file:\n", file=sys.stderr)
        print(f"  {exc}", file=sys.stderr)
        return 1

    from assist.src.core.aggregator import stdout_sink
    from assist.src.core.errors import AssistError
    from assist.src.core.orchestrator import Orchestrator
    from assist.src.utils.logger import get_logger

    logger = get_logger(__name__)

    try:
        model_client, embedding_client, store = build_components(settings)
    except AssistError as exc:
        logger.error("Failed to initialise backends: %s", exc)
        return 1
    logger.info("Backends ready in %.1fms (provider=%s, store=%s)", (time.perf_counter() - t_start) * 1000, settings.MODEL_PROVIDER, settings.STORE_BACKEND)

    echo = settings.STREAM_ECHO and not args.quiet
    orchestrator = Orchestrator(model_client, embedding_client, store, sink=stdout_sink if echo else None)  # type: ignore[arg-type]

    streamed = args.command == "expert" or args.stream
    try:
        result = asyncio.run(run(args, orchestrator))
    except AssistError as exc:
        logger.error("%s: %s", exc.kind, exc.message)
        if exc.partial_text:
            print(exc.partial_text)
        return 2

    if streamed and echo:
        print()
    else:
        print(result)

    logger.info("Total elapsed: %.2fs", time.perf_counter() - t_start)
    return 0


# ── Entry point ────────────────────────────────────────────────────────

if __name__ == "__main__":
    sys.exit(main())
