"""StreamAggregator tests: ordering, partial failure, timeout, cancellation."""

import asyncio
import threading

import pytest

from assist.src.core.aggregator import StreamAggregator
from assist.src.core.errors import StreamTimeoutError
from assist.src.core.models import CompletionChunk


async def _chunks(*deltas, error=None, delay=0.0):
    for delta in deltas:
        if delay:
            await asyncio.sleep(delay)
        yield CompletionChunk(delta_text=delta)
    if error is not None:
        raise error


async def _threaded_chunks(deltas):
    """Produce every chunk on a worker thread, as the Bedrock client does."""
    iterator = iter(deltas)
    while True:
        delta = await asyncio.to_thread(next, iterator, None)
        if delta is None:
            return
        yield CompletionChunk(delta_text=delta)


class TestStreamAggregator:

    @pytest.mark.asyncio
    async def test_concatenates_in_delivery_order(self, captured):
        sink, deltas = captured

        completion = await StreamAggregator(sink=sink, timeout=5).aggregate(_chunks("He", "llo", "!"))

        assert completion.full_text == "Hello!"
        assert completion.error is None
        assert not completion.partial
        assert deltas == ["He", "llo", "!"]

    @pytest.mark.asyncio
    async def test_no_reordering_or_dedup(self):
        completion = await StreamAggregator(timeout=5).aggregate(_chunks("a", "a", "b", "", "a"))

        assert completion.full_text == "aaba"

    @pytest.mark.asyncio
    async def test_chunks_from_worker_thread(self):
        deltas = [f"{i}," for i in range(200)]

        completion = await StreamAggregator(timeout=10).aggregate(_threaded_chunks(deltas))

        assert completion.full_text == "".join(deltas)

    @pytest.mark.asyncio
    async def test_empty_stream(self):
        completion = await StreamAggregator(timeout=5).aggregate(_chunks())

        assert completion.full_text == ""
        assert completion.error is None
        assert completion.chunk_count == 0

    @pytest.mark.asyncio
    async def test_mid_stream_error_keeps_partial_text(self):
        cause = RuntimeError("connection reset")

        completion = await StreamAggregator(timeout=5).aggregate(_chunks("C1", "C2", error=cause))

        assert completion.full_text == "C1C2"
        assert completion.error is cause
        assert completion.partial
        assert completion.chunk_count == 2

    @pytest.mark.asyncio
    async def test_error_before_first_chunk_counts_zero(self):
        cause = RuntimeError("access denied")

        completion = await StreamAggregator(timeout=5).aggregate(_chunks(error=cause))

        assert completion.full_text == ""
        assert completion.error is cause
        assert completion.chunk_count == 0

    @pytest.mark.asyncio
    async def test_failing_sink_does_not_abort_accumulation(self):
        calls = []

        def flaky_sink(delta):
            calls.append(delta)
            raise OSError("stdout closed")

        completion = await StreamAggregator(sink=flaky_sink, timeout=5).aggregate(_chunks("x", "y", "z"))

        assert completion.full_text == "xyz"
        assert calls == ["x", "y", "z"]

    @pytest.mark.asyncio
    async def test_sink_sees_each_delta_on_caller_thread(self):
        threads = []

        completion = await StreamAggregator(sink=lambda d: threads.append(threading.get_ident()), timeout=10).aggregate(_threaded_chunks(["a", "b"]))

        assert completion.full_text == "ab"
        assert threads == [threading.get_ident()] * 2

    @pytest.mark.asyncio
    async def test_timeout_discards_partial_and_closes_stream(self):
        closed = asyncio.Event()

        async def slow():
            try:
                yield CompletionChunk(delta_text="partial")
                await asyncio.sleep(10)
                yield CompletionChunk(delta_text="never")
            finally:
                closed.set()

        with pytest.raises(StreamTimeoutError) as excinfo:
            await StreamAggregator(timeout=0.05).aggregate(slow())

        assert isinstance(excinfo.value, TimeoutError)
        assert excinfo.value.partial_text is None
        assert closed.is_set()

    @pytest.mark.asyncio
    async def test_cancellation_releases_waiter_and_stream(self):
        closed = asyncio.Event()
        started = asyncio.Event()

        async def endless():
            try:
                while True:
                    started.set()
                    yield CompletionChunk(delta_text=".")
                    await asyncio.sleep(0.01)
            finally:
                closed.set()

        task = asyncio.create_task(StreamAggregator(timeout=30).aggregate(endless()))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert closed.is_set()

    @pytest.mark.asyncio
    async def test_concurrent_requests_are_independent(self):
        first, second = await asyncio.gather(
            StreamAggregator(timeout=5).aggregate(_chunks("a1", "a2", "a3", delay=0.001)),
            StreamAggregator(timeout=5).aggregate(_chunks("b1", "b2", delay=0.001)),
        )

        assert first.full_text == "a1a2a3"
        assert second.full_text == "b1b2"
