import asyncio

import pytest

from discover_cymru.utils.async_utils import chunked, gather_in_chunks


def test_chunked_sizes():
    assert [len(c) for c in chunked(range(25), 10)] == [10, 10, 5]
    assert chunked([], 10) == []
    assert chunked(["a", "b"], 5) == [["a", "b"]]


def test_chunked_rejects_zero():
    with pytest.raises(ValueError):
        chunked([1, 2], 0)


@pytest.mark.asyncio
async def test_gather_in_chunks_keeps_input_order():
    async def slow_identity(n):
        # later items finish first within a chunk
        await asyncio.sleep(0.001 * (10 - n))
        return n * 2

    assert await gather_in_chunks(range(7), slow_identity, 3) == [0, 2, 4, 6, 8, 10, 12]
