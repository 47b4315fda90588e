"""
Shared utilities for provider modules.
"""
import aiohttp
from typing import Optional
from contextlib import asynccontextmanager


@asynccontextmanager
async def get_session(session: Optional[aiohttp.ClientSession] = None):
    """Context manager for aiohttp session handling.

    If session is provided, yields it.
    If not, creates a new session and closes it after use.
    """
    if session is not None:
        yield session
    else:
        async with aiohttp.ClientSession() as new_session:
            yield new_session
