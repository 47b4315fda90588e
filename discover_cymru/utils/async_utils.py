"""
Async utilities for bounded fan-out over the event loop.

The geocoder issues outbound calls in fixed-size groups: every call in a
group must finish before the next group starts, which caps in-flight
requests at the group size.
"""

import asyncio
from typing import Awaitable, Callable, Iterable, List, TypeVar

T = TypeVar('T')
R = TypeVar('R')


def chunked(items: Iterable[T], size: int) -> List[List[T]]:
    """Split items into consecutive lists of at most `size` elements.

    Example:
        >>> [len(c) for c in chunked(range(25), 10)]
        [10, 10, 5]

    Raises:
        ValueError: If size is less than 1
    """
    if size < 1:
        raise ValueError(f"Chunk size must be at least 1, got {size}")
    items = list(items)
    return [items[i:i + size] for i in range(0, len(items), size)]


async def gather_in_chunks(
    items: Iterable[T],
    func: Callable[[T], Awaitable[R]],
    size: int,
) -> List[R]:
    """Apply an async function to every item, `size` at a time.

    Each chunk is awaited with asyncio.gather before the next one starts, so
    at most `size` coroutines are ever running. Results come back in input
    order regardless of which call finished first.

    Args:
        items: Items to process
        func: Async function applied to each item
        size: Maximum number of concurrent calls

    Returns:
        List of results in the same order as input items
    """
    results: List[R] = []
    for chunk in chunked(items, size):
        results.extend(await asyncio.gather(*(func(item) for item in chunk)))
    return results
