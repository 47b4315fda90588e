"""
File-backed geocode cache.

The whole mapping lives in one JSON object (name -> {latitude, longitude} or
null). It is read once, mutated in memory, and overwritten as a single
snapshot on flush. Entries are write-once and never expire.

Read and write failures are logged and swallowed: a missing or corrupt file
means an empty cache, and a failed flush leaves the entries in memory only.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

import aiofiles
import aiofiles.os

from .geocoding import Coordinates

logger = logging.getLogger(__name__)

CacheValue = Optional[Coordinates]

_MISSING = object()


def _normalize_entry(name: str, value: Any) -> Union[CacheValue, object]:
    """Coerce a stored value into Coordinates/None, or _MISSING if unusable.

    Accepts the current {latitude, longitude} shape and the older
    {lat, lng} shape.
    """
    if value is None:
        return None
    if isinstance(value, dict):
        lat = value.get("latitude", value.get("lat"))
        lng = value.get("longitude", value.get("lng"))
        try:
            return {"latitude": float(lat), "longitude": float(lng)}
        except (TypeError, ValueError):
            pass
    logger.warning("[Geocode] Dropping unreadable cache entry for %s: %r", name, value)
    return _MISSING


class GeocodeCache:
    """In-memory mirror of the on-disk geocode cache.

    Nothing is read until ensure_loaded() is awaited; the load happens at most
    once per instance.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._entries: Dict[str, CacheValue] = {}
        self._loaded = False
        self._dirty = False
        self._load_lock = asyncio.Lock()
        self._flush_lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def dirty(self) -> bool:
        """True when entries were added since the last successful flush."""
        return self._dirty

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def get(self, name: str) -> CacheValue:
        return self._entries.get(name)

    def put(self, name: str, value: CacheValue) -> bool:
        """Store a resolution for name unless one already exists.

        Returns:
            True if a new entry was created
        """
        if name in self._entries:
            return False
        self._entries[name] = value
        self._dirty = True
        return True

    async def ensure_loaded(self) -> None:
        """Load the snapshot from disk on first call; later calls are no-ops."""
        if self._loaded:
            return
        async with self._load_lock:
            if self._loaded:
                return
            loaded = await self._read_snapshot()
            # Entries resolved before the load finished take precedence
            for name, value in loaded.items():
                self._entries.setdefault(name, value)
            self._loaded = True
            logger.info("[Geocode] Loaded %d entries from cache file %s", len(loaded), self.path)

    async def _read_snapshot(self) -> Dict[str, CacheValue]:
        if not await aiofiles.os.path.exists(self.path):
            return {}
        try:
            async with aiofiles.open(self.path, 'r', encoding='utf-8') as f:
                raw = await f.read()
            data = json.loads(raw)
        except (OSError, ValueError) as e:
            logger.warning("[Geocode] Could not read cache file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("[Geocode] Cache file %s is not a JSON object, ignoring it", self.path)
            return {}

        entries: Dict[str, CacheValue] = {}
        for name, value in data.items():
            entry = _normalize_entry(name, value)
            if entry is not _MISSING:
                entries[name] = entry
        return entries

    async def flush(self) -> bool:
        """Overwrite the on-disk snapshot with the full in-memory mapping.

        The file on disk is always either the previous or the new snapshot.

        Returns:
            True if the snapshot was written
        """
        async with self._flush_lock:
            snapshot = dict(self._entries)
            tmp_path = self.path.with_name(f"{self.path.name}.{os.getpid()}.tmp")
            try:
                await aiofiles.os.makedirs(self.path.parent, exist_ok=True)
                async with aiofiles.open(tmp_path, 'w', encoding='utf-8') as f:
                    await f.write(json.dumps(snapshot, indent=2, ensure_ascii=False))
                await aiofiles.os.replace(tmp_path, self.path)
            except OSError as e:
                logger.warning("[Geocode] Could not write cache file %s: %s", self.path, e)
                return False
        # Only clear if nothing was added while the write was suspended
        if len(self._entries) == len(snapshot):
            self._dirty = False
        logger.info("[Geocode] Cache saved (%d entries)", len(snapshot))
        return True

    def stats(self) -> Dict[str, Any]:
        """Summary counts for the admin endpoint."""
        negative = sum(1 for v in self._entries.values() if v is None)
        return {
            "path": str(self.path),
            "loaded": self._loaded,
            "entries": len(self._entries),
            "resolved": len(self._entries) - negative,
            "negative": negative,
            "dirty": self._dirty,
        }
