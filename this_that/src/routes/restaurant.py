"""
Restaurant matching route: three venue archetypes in the target area that
share the character of a known restaurant, each with a map search link.
"""
import logging
import math

from quart import Blueprint, jsonify, request

from this_that.providers.geocoding import gmaps_link
from .utils import read_json_body, method_not_allowed

logger = logging.getLogger(__name__)

bp = Blueprint('restaurant', __name__)

ALLOW = "POST, OPTIONS"

ARCHETYPES = [
    ('Neighborhood Bistro', 'bistro', 'Similar vibe to "{name}": casual atmosphere, mid-price mains, late hours.'),
    ('Classic Deli', 'deli', 'Cuts, sandwiches and counter service reminiscent of "{name}".'),
    ("Chef's Counter", 'chef counter', 'Open-kitchen energy and a signature dish focus, like "{name}".'),
]


def _coord(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value if math.isfinite(value) else None


def build_restaurant_matches(name: str, area: str, lat=None, lng=None, address=None):
    matches = []
    for i, (label, term, why) in enumerate(ARCHETYPES):
        reason = why.format(name=name)
        if i == 0 and lat is not None and lng is not None:
            reason += f" (Seeded by coordinates {lat:.3f}, {lng:.3f})"
        elif i == 1 and address:
            reason += f" (Reference: {address})"
        matches.append({
            'name': f"{label} • {area}",
            'fullAddress': area,
            'cityCountry': area,
            'website': '',
            'mapUrl': gmaps_link(f"{term} near {area}"),
            'why': reason,
        })
    return matches


@bp.after_request
async def _allowed_methods(response):
    response.headers['Access-Control-Allow-Methods'] = ALLOW
    return response

@bp.route('/api/like-restaurant', methods=['GET', 'POST', 'OPTIONS', 'PUT', 'PATCH', 'DELETE'])
async def like_restaurant():
    """
    Request JSON: {"this": {"name", "lat"?, "lng"?, "address"?}, "that": {"area"}}
    Response JSON: {"matches": [...]}
    """
    if request.method == 'OPTIONS':
        return '', 200
    if request.method != 'POST':
        return method_not_allowed(ALLOW)

    try:
        body = await read_json_body()
        this_input = body.get('this') if isinstance(body.get('this'), dict) else {}
        that_input = body.get('that') if isinstance(body.get('that'), dict) else {}

        name = str(this_input.get('name') or '').strip()
        area = str(that_input.get('area') or '').strip()
        if not name or not area:
            return jsonify({'error': 'Missing fields', 'details': 'Provide this.name and that.area'}), 400

        matches = build_restaurant_matches(
            name,
            area,
            lat=_coord(this_input.get('lat')),
            lng=_coord(this_input.get('lng')),
            address=this_input.get('address') or None,
        )
        return jsonify({'matches': matches})
    except Exception as e:
        logger.exception(f"like-restaurant handler failed: {e}")
        return jsonify({'error': 'Server error'}), 500


def register(app):
    """Register restaurant blueprint with app"""
    app.register_blueprint(bp)
