"""
Admin routes: Health checks, metrics and geocode cache stats
"""
import time
from quart import Blueprint, jsonify

from discover_cymru.config import get_config, get_geocode_api_key
from discover_cymru.src.metrics import get_metrics as get_metrics_dict

bp = Blueprint('admin', __name__)


@bp.route('/healthz')
async def healthz():
    """Lightweight health endpoint returning component status."""
    from discover_cymru.src.app import aiohttp_session, redis_client, geocode_service

    status = {
        'app': 'ok',
        'time': time.time(),
        'environment': get_config().environment.value,
        'ready': bool(aiohttp_session is not None),
        'redis': bool(redis_client is not None),
        'google_maps_key': bool(get_geocode_api_key()),
        'geocode_cache_loaded': bool(geocode_service is not None and geocode_service.cache.loaded),
    }
    return jsonify(status)


@bp.route('/admin/geocode-cache')
async def geocode_cache_stats():
    """Entry counts for the geocode cache; loads it if nothing has yet."""
    from discover_cymru.src.app import geocode_service

    if geocode_service is None:
        return jsonify({'error': 'geocode service not started'}), 503
    await geocode_service.cache.ensure_loaded()
    stats = geocode_service.cache.stats()
    stats['in_flight'] = geocode_service.in_flight
    return jsonify(stats)


@bp.route('/metrics/json')
async def metrics_json():
    """Return simple JSON metrics (counters and latency summaries)"""
    try:
        metrics = await get_metrics_dict()
        return jsonify(metrics)
    except Exception:
        from discover_cymru.src.app import app
        app.logger.exception('Failed to get metrics')
        return jsonify({'error': 'failed to fetch metrics'}), 500


def register(app):
    """Register admin blueprint with app"""
    app.register_blueprint(bp)
