"""
Discover Cymru geocoding API (Quart).

The geocode service, its cache and the shared aiohttp session are created at
startup and torn down at shutdown; route modules read them from this module.
"""

from quart import Quart
from quart_cors import cors
import aiohttp
from redis import asyncio as aioredis

from discover_cymru.config import get_config, setup_logging
from discover_cymru.providers.caching import GeocodeCache
from discover_cymru.services.geocode_service import GeocodeService
from .routes import register_blueprints

app = Quart(__name__)

# Global async clients
aiohttp_session: aiohttp.ClientSession | None = None
redis_client: aioredis.Redis | None = None
geocode_service: GeocodeService | None = None


def create_geocode_service(session: aiohttp.ClientSession | None = None) -> GeocodeService:
    """Build a GeocodeService from the current configuration."""
    config = get_config()
    geo = config.geocode_config
    return GeocodeService(
        cache=GeocodeCache(geo.cache_file),
        session=session,
        timeout=config.get_timeout('geo'),
        concurrency=geo.concurrency,
        region_suffix=geo.region_suffix,
        url=geo.url,
    )


@app.before_serving
async def startup():
    global aiohttp_session, redis_client, geocode_service
    setup_logging()
    config = get_config()
    aiohttp_session = aiohttp.ClientSession(headers={"User-Agent": "discover-cymru-geocoder"})
    geocode_service = create_geocode_service(aiohttp_session)

    if not config.redis_url:
        app.logger.info("REDIS_URL not set; metrics kept in memory")
        return
    client = None
    try:
        client = aioredis.from_url(config.redis_url)
        await client.ping()  # type: ignore
        redis_client = client
        app.logger.info("Redis connected")
    except Exception:
        redis_client = None
        app.logger.warning("Redis not available; metrics kept in memory")
        if client is not None:
            await client.aclose()


@app.after_serving
async def shutdown():
    global aiohttp_session, redis_client, geocode_service
    if geocode_service and geocode_service.cache.dirty:
        await geocode_service.cache.flush()
    geocode_service = None
    if aiohttp_session:
        await aiohttp_session.close()
        aiohttp_session = None
    if redis_client:
        await redis_client.aclose()
        redis_client = None


cors(app, allow_origin=get_config().cors_origin, allow_methods=["GET", "POST", "OPTIONS"])
register_blueprints(app)
