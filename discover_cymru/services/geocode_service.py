"""
Geocode cache service: organisation name -> coordinates, at most one
provider call per name.

A name moves UNSEEN -> IN_FLIGHT -> RESOLVED (coordinates or None) and never
goes back. Provider failures are stored as None like any other result, so a
failing name is never retried while its cache entry exists.

Concurrent callers asking for the same unresolved name share one in-flight
lookup through the pending map instead of each calling the provider.
"""

import asyncio
import logging
import time
from typing import Dict, Iterable, List, Optional

import aiohttp

from discover_cymru.exceptions import MissingApiKeyError
from discover_cymru.providers import geocoding
from discover_cymru.providers.caching import CacheValue, GeocodeCache
from discover_cymru.src.metrics import increment, observe_latency
from discover_cymru.utils.async_utils import gather_in_chunks

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 10


class GeocodeService:
    """Resolves organisation names through a write-once cache.

    Args:
        cache: Cache instance owned by this service
        session: Shared aiohttp session; a throwaway session per call if None
        timeout: Per-call provider timeout in seconds
        concurrency: Default group size for resolve_batch
        region_suffix: Qualifier appended to every provider query
        url: Geocoding endpoint
    """

    def __init__(
        self,
        cache: GeocodeCache,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = geocoding.DEFAULT_TIMEOUT,
        concurrency: int = DEFAULT_CONCURRENCY,
        region_suffix: str = geocoding.DEFAULT_REGION_SUFFIX,
        url: str = geocoding.GOOGLE_GEOCODE_URL,
    ):
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self.cache = cache
        self.session = session
        self.timeout = timeout
        self.concurrency = concurrency
        self.region_suffix = region_suffix
        self.url = url
        self._pending: Dict[str, asyncio.Task] = {}

    @property
    def in_flight(self) -> int:
        return len(self._pending)

    async def resolve(self, name: str, api_key: Optional[str]) -> CacheValue:
        """Return coordinates for one organisation name, or None.

        Raises:
            ValueError: If name is empty
            MissingApiKeyError: If api_key is missing
        """
        if not name or not name.strip():
            raise ValueError("Organisation name must be a non-empty string")
        if not api_key:
            raise MissingApiKeyError()
        await self.cache.ensure_loaded()
        return await self._resolve_one(name, api_key)

    async def resolve_batch(
        self,
        names: Iterable[str],
        api_key: Optional[str],
        concurrency: Optional[int] = None,
    ) -> Dict[str, CacheValue]:
        """Resolve many names, fetching uncached ones in sequential groups.

        Duplicate and blank names are dropped. Groups hold at most `concurrency` names
        and each group finishes before the next starts. If any entry was
        added, the cache is flushed once after the last group.

        Raises:
            ValueError: If concurrency is less than 1
            MissingApiKeyError: If api_key is missing
        """
        limit = self.concurrency if concurrency is None else concurrency
        if limit < 1:
            raise ValueError(f"concurrency must be at least 1, got {limit}")
        if not api_key:
            raise MissingApiKeyError()

        await self.cache.ensure_loaded()
        started = time.perf_counter()

        unique: List[str] = list(dict.fromkeys(
            name for name in names if isinstance(name, str) and name.strip()
        ))
        results: Dict[str, CacheValue] = {}
        uncached: List[str] = []
        for name in unique:
            if name in self.cache:
                results[name] = self.cache.get(name)
            else:
                uncached.append(name)

        logger.info(
            "[Geocode] %d requested - %d cached, %d to fetch",
            len(unique), len(unique) - len(uncached), len(uncached),
        )
        if results:
            await increment('geocode.cache_hit', len(results))

        resolved = await gather_in_chunks(uncached, lambda n: self._resolve_one(n, api_key), limit)
        results.update(zip(uncached, resolved))

        if self.cache.dirty:
            await self.cache.flush()

        await observe_latency('geocode.batch_ms', (time.perf_counter() - started) * 1000.0)
        return {name: results[name] for name in unique}

    async def _resolve_one(self, name: str, api_key: str) -> CacheValue:
        if name in self.cache:
            await increment('geocode.cache_hit')
            return self.cache.get(name)

        task = self._pending.get(name)
        if task is None:
            task = asyncio.create_task(self._lookup_and_store(name, api_key))
            self._pending[name] = task
            task.add_done_callback(lambda t, name=name: self._forget(name, t))
        else:
            logger.debug("[Geocode] Joining in-flight lookup for %s", name)
        # A cancelled caller stops waiting; the lookup still finishes and is cached
        return await asyncio.shield(task)

    def _forget(self, name: str, task: asyncio.Task) -> None:
        if self._pending.get(name) is task:
            del self._pending[name]

    async def _lookup_and_store(self, name: str, api_key: str) -> CacheValue:
        value = await self._lookup(name, api_key)
        self.cache.put(name, value)
        return self.cache.get(name)

    async def _lookup(self, name: str, api_key: str) -> CacheValue:
        await increment('geocode.cache_miss')
        started = time.perf_counter()
        try:
            value = await geocoding.geocode_organisation(
                name,
                api_key,
                session=self.session,
                timeout=self.timeout,
                region_suffix=self.region_suffix,
                url=self.url,
            )
        except Exception:
            # Anything raised past the provider still becomes a negative entry
            logger.exception("[Geocode] Unexpected error for %s", name)
            await increment('geocode.provider_error')
            value = None
        await observe_latency('geocode.provider_ms', (time.perf_counter() - started) * 1000.0)
        if value is None:
            await increment('geocode.not_found')
        return value
