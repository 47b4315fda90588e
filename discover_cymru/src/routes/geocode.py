"""
Geocode routes: organisation name(s) -> coordinates for the map view
"""
from quart import Blueprint, request, jsonify

from discover_cymru.config import get_geocode_api_key
from discover_cymru.exceptions import MissingApiKeyError

bp = Blueprint('geocode', __name__)


def _collect_names(payload: dict) -> tuple[bool, list[str]]:
    """Return (is_batch, names) from either request shape.

    Supports:
      Single: {"organizationName": "..."}
      Batch:  {"organizationNames": [...]}
    Non-string and blank names are dropped.
    """
    raw = payload.get('organizationNames')
    is_batch = isinstance(raw, list)
    if not is_batch:
        raw = [payload.get('organizationName')]
    names = [n for n in raw if isinstance(n, str) and n.strip()]
    return is_batch, names


@bp.route('/api/geocode', methods=['POST'])
async def geocode():
    """Geocode one organisation (returns coordinates or null) or many
    (returns {"results": {name: coordinates|null}})."""
    from discover_cymru.src import app as app_module

    try:
        payload = await request.get_json(silent=True) or {}
        if not isinstance(payload, dict):
            payload = {}
        is_batch, names = _collect_names(payload)
        if not names:
            return jsonify({'error': 'Organization name(s) required'}), 400

        api_key = get_geocode_api_key()
        if not api_key:
            app_module.app.logger.error("[Geocode] Google Maps API key not configured")
            return jsonify({'error': 'Google Maps API key not configured'}), 500

        service = app_module.geocode_service
        if service is None:
            service = app_module.geocode_service = app_module.create_geocode_service(app_module.aiohttp_session)

        results = await service.resolve_batch(names, api_key)
        if not is_batch:
            return jsonify(results[names[0]])
        return jsonify({'results': results})
    except MissingApiKeyError as e:
        return jsonify({'error': str(e)}), 500
    except Exception as e:
        app_module.app.logger.exception('[Geocode] Error')
        return jsonify({'error': 'Failed to geocode locations', 'details': str(e)}), 500


def register(app):
    """Register geocode blueprint with app"""
    app.register_blueprint(bp)
