"""
Assist - StreamAggregator
=========================
Turns a stream of ``CompletionChunk`` objects into one ``Completion``.

Architecture
------------
``aggregate()`` wires an explicit producer/consumer pair per request:

    backend iterator ──(producer task)──▶ asyncio.Queue ──(waiter)──▶ accumulator
                                                               └──▶ live sink

- The **producer task** drains the backend iterator (which may itself pull
  chunks on a worker thread) and pushes chunks, then a terminal marker, onto
  the channel.
- The **waiter** is the caller's coroutine.  It appends each delta to a
  lock-guarded accumulator owned by this call only, then forwards the delta
  to the optional live sink.  A failing sink is logged and ignored.

Outcomes
--------
- Done     → ``Completion(full_text=...)``.
- Error    → ``Completion(full_text=<partial>, error=cause, chunk_count=n)``.
- Timeout  → producer cancelled, partial text discarded, ``StreamTimeoutError``.
- Cancel   → producer cancelled, iterator closed, ``CancelledError`` re-raised.
"""

from __future__ import annotations

import asyncio
import sys
import threading
import time
from typing import AsyncIterator, Callable

from assist.config.settings import settings
from assist.src.core.errors import StreamTimeoutError
from assist.src.core.models import Completion, CompletionChunk
from assist.src.utils.logger import get_logger

logger = get_logger(__name__)

LiveSink = Callable[[str], None]

_DONE = object()


def stdout_sink(delta: str) -> None:
    """Echo a delta to stdout as it arrives."""
    sys.stdout.write(delta)
    sys.stdout.flush()


class _Accumulator:
    """Append-only text buffer; appends and reads are serialised by a lock."""

    __slots__ = ("_parts", "_lock")

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._lock = threading.Lock()


    def append(self, delta: str) -> None:
        with self._lock:
            self._parts.append(delta)


    def value(self) -> str:
        with self._lock:
            return "".join(self._parts)


    def count(self) -> int:
        with self._lock:
            return len(self._parts)


class StreamAggregator:
    """
    Aggregate one streamed completion.

    Parameters
    ----------
    sink
        Optional callable receiving each delta as it is applied.
    timeout
        Seconds to wait for the stream to finish.  Defaults to
        ``settings.STREAM_TIMEOUT_SECONDS``.
    """

    __slots__ = ("_sink", "_timeout")

    def __init__(self, sink: LiveSink | None = None, timeout: float | None = None) -> None:
        self._sink = sink
        self._timeout = timeout if timeout is not None else settings.STREAM_TIMEOUT_SECONDS


    async def aggregate(self, chunks: AsyncIterator[CompletionChunk]) -> Completion:
        t_start = time.perf_counter()
        accumulator = _Accumulator()
        channel: asyncio.Queue[object] = asyncio.Queue()
        producer = asyncio.create_task(self._produce(chunks, channel))

        try:
            error = await asyncio.wait_for(self._consume(channel, accumulator), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.error("[STREAM] No completion after %.1fs; discarding partial text.", self._timeout)
            raise StreamTimeoutError(f"Stream did not complete within {self._timeout:.1f}s") from None
        finally:
            if not producer.done():
                producer.cancel()
            await asyncio.gather(producer, return_exceptions=True)

        text = accumulator.value()
        elapsed_ms = (time.perf_counter() - t_start) * 1000
        if error is not None:
            logger.error("[STREAM] Backend failed after %d chars in %.1fms: %s", len(text), elapsed_ms, error)
            return Completion(full_text=text, error=error, chunk_count=accumulator.count())

        logger.info("[STREAM] Completed: %d chars in %.1fms", len(text), elapsed_ms)
        return Completion(full_text=text, chunk_count=accumulator.count())


    @staticmethod
    async def _produce(chunks: AsyncIterator[CompletionChunk], channel: asyncio.Queue[object]) -> None:
        """Push every chunk, then ``_DONE`` or the failure, onto the channel."""
        try:
            async for chunk in chunks:
                channel.put_nowait(chunk)
            channel.put_nowait(_DONE)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            channel.put_nowait(exc)
        finally:
            aclose = getattr(chunks, "aclose", None)
            if aclose is not None:
                await aclose()


    async def _consume(self, channel: asyncio.Queue[object], accumulator: _Accumulator) -> Exception | None:
        """Apply chunks in delivery order until the terminal marker arrives."""
        while True:
            item = await channel.get()
            if item is _DONE:
                return None
            if isinstance(item, Exception):
                return item
            delta = item.delta_text  # type: ignore[attr-defined]
            accumulator.append(delta)
            self._forward(delta)


    def _forward(self, delta: str) -> None:
        if self._sink is None:
            return
        try:
            self._sink(delta)
        except Exception:
            logger.exception("[STREAM] Live sink failed; accumulation continues.")
