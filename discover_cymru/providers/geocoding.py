"""
Google Geocoding provider for organisation names.

Every failure mode (non-200, empty results, timeout, transport error,
malformed body) is reported as None; nothing raised here reaches callers.
"""
import asyncio
import logging
from typing import Any, Optional, TypedDict

import aiohttp

from discover_cymru.config import GOOGLE_GEOCODE_URL
from .utils import get_session

logger = logging.getLogger(__name__)

DEFAULT_REGION_SUFFIX = ", Wales, UK"
DEFAULT_TIMEOUT = 5.0


class Coordinates(TypedDict):
    """Geographic coordinates."""

    latitude: float
    longitude: float


def build_query(name: str, region_suffix: str = DEFAULT_REGION_SUFFIX) -> str:
    """Append the regional qualifier to an organisation name."""
    return f"{name}{region_suffix}"


def extract_first_location(data: Any) -> Optional[Coordinates]:
    """Pull the first result's coordinates out of a Geocoding API body.

    Returns None when there are no results.

    Raises:
        KeyError, TypeError, ValueError: If the first result is malformed
    """
    results = data.get("results") if isinstance(data, dict) else None
    if not results:
        return None
    loc = results[0]["geometry"]["location"]
    return {"latitude": float(loc["lat"]), "longitude": float(loc["lng"])}


async def geocode_organisation(
    name: str,
    api_key: str,
    session: Optional[aiohttp.ClientSession] = None,
    timeout: float = DEFAULT_TIMEOUT,
    region_suffix: str = DEFAULT_REGION_SUFFIX,
    url: str = GOOGLE_GEOCODE_URL,
) -> Optional[Coordinates]:
    """Resolve an organisation name to coordinates via Google Geocoding.

    Args:
        name: Organisation name, sent as "<name><region_suffix>"
        api_key: Google Maps API key
        session: Optional shared aiohttp session
        timeout: Total request timeout in seconds
        region_suffix: Qualifier narrowing the search to Wales
        url: Geocoding endpoint

    Returns:
        Coordinates of the first result, or None on any failure
    """
    params = {"address": build_query(name, region_suffix), "key": api_key}
    try:
        async with get_session(session) as sess:
            async with sess.get(url, params=params, timeout=aiohttp.ClientTimeout(total=timeout)) as resp:
                if resp.status != 200:
                    logger.error("[Geocode] API %s for: %s", resp.status, name)
                    return None
                data = await resp.json()
    except asyncio.TimeoutError:
        logger.error("[Geocode] Timed out after %.1fs for: %s", timeout, name)
        return None
    except (aiohttp.ClientError, ValueError) as e:
        logger.error("[Geocode] Error for %s: %s", name, e)
        return None

    try:
        result = extract_first_location(data)
    except (KeyError, IndexError, TypeError, ValueError) as e:
        logger.error("[Geocode] Malformed response for %s: %s", name, e)
        return None

    if result is None:
        logger.info("[Geocode] No results: %s", name)
        return None
    logger.info("[Geocode] Found: %s -> %s, %s", name, result["latitude"], result["longitude"])
    return result
