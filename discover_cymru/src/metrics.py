"""
Async metrics helpers for the geocode service.

Counters go to Redis under `metrics:counter:{name}` and latency samples are
LPUSHed to `metrics:lat:{name}` (trimmed to the newest `max_samples`). When
the app has no Redis client the same data is kept in process memory, which
is what tests and local development use.
"""

import logging
import statistics
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

_MEM_COUNTERS: Dict[str, int] = {}
_MEM_LATS: Dict[str, List[float]] = {}


async def _get_redis():
    # Imported lazily: the app module imports this one
    from discover_cymru.src import app as app_module
    return app_module.redis_client


def _decode(key) -> str:
    return key.decode() if isinstance(key, (bytes, bytearray)) else key


def _summarize(samples: List[float]) -> Dict[str, float]:
    return {
        'count': len(samples),
        'avg_ms': sum(samples) / len(samples),
        'p50_ms': float(statistics.median(samples)),
    }


def _mem_increment(name: str, amount: int) -> None:
    _MEM_COUNTERS[name] = _MEM_COUNTERS.get(name, 0) + amount


def _mem_observe(name: str, ms: float, max_samples: int) -> None:
    samples = _MEM_LATS.setdefault(name, [])
    samples.insert(0, ms)
    del samples[max_samples:]


async def increment(name: str, amount: int = 1) -> None:
    """Increment a named counter by amount"""
    rc = await _get_redis()
    if rc is None:
        _mem_increment(name, amount)
        return
    try:
        await rc.incrby(f"metrics:counter:{name}", amount)
    except Exception as e:
        logger.debug("metrics increment via redis failed (%s), using memory", e)
        _mem_increment(name, amount)


async def observe_latency(name: str, ms: float, max_samples: int = 1000) -> None:
    """Record a latency sample (milliseconds) for a named metric"""
    rc = await _get_redis()
    if rc is None:
        _mem_observe(name, ms, max_samples)
        return
    key = f"metrics:lat:{name}"
    try:
        await rc.lpush(key, str(ms))
        await rc.ltrim(key, 0, max_samples - 1)
    except Exception as e:
        logger.debug("metrics latency via redis failed (%s), using memory", e)
        _mem_observe(name, ms, max_samples)


async def get_metrics() -> Dict[str, Any]:
    """Return counters and latency summaries (count, avg_ms, p50_ms).

    Redis values are merged with anything recorded in memory, so samples
    taken before Redis came up are not lost.
    """
    counters: Dict[str, int] = dict(_MEM_COUNTERS)
    samples: Dict[str, List[float]] = {n: list(v) for n, v in _MEM_LATS.items()}

    rc = await _get_redis()
    if rc is not None:
        try:
            for k in await rc.keys('metrics:counter:*'):
                key = _decode(k)
                name = key.split(':', 2)[-1]
                v = await rc.get(key)
                counters[name] = counters.get(name, 0) + (int(v) if v is not None else 0)
            for k in await rc.keys('metrics:lat:*'):
                key = _decode(k)
                name = key.split(':', 2)[-1]
                vals = [float(v) for v in await rc.lrange(key, 0, -1)]
                samples.setdefault(name, []).extend(vals)
        except Exception:
            logger.exception("Failed to read metrics from redis; reporting in-memory metrics only")
            counters = dict(_MEM_COUNTERS)
            samples = {n: list(v) for n, v in _MEM_LATS.items()}

    return {
        'counters': counters,
        'latencies': {n: _summarize(v) for n, v in samples.items() if v},
    }


def reset_memory_metrics() -> None:
    """Clear in-process metrics (used by tests)."""
    _MEM_COUNTERS.clear()
    _MEM_LATS.clear()
