"""
Neighborhood matching route: "this place is just like that place"
"""
import logging

from quart import Blueprint, current_app, jsonify, request

from this_that.providers.base import ConfigurationError
from this_that.providers.openai_provider import MatchRequester, OpenAIChatClient
from this_that.src.enrichment import enrich_results
from .utils import get_config, read_json_body, method_not_allowed

logger = logging.getLogger(__name__)

bp = Blueprint('like', __name__)

ALLOW = "GET, POST, OPTIONS"
EMPTY_NOTE = "No matching neighborhoods could be generated for this request. Try rephrasing the place or region."


def _inputs(data: dict):
    place = data.get('place') or data.get('thisPlace') or ''
    region = data.get('region') or data.get('thatRegion') or ''
    return str(place).strip(), str(region).strip()


def _completion_fn():
    complete = current_app.extensions.get('this_that.completion')
    if complete is not None:
        return complete
    config = get_config()
    client = OpenAIChatClient(
        config.openai,
        timeout=config.get_timeout('ai'),
        session=current_app.extensions.get('this_that.http_session'),
    )
    return client.complete


@bp.route('/api/like', methods=['GET', 'POST', 'OPTIONS', 'PUT', 'PATCH', 'DELETE'])
async def like():
    """
    Match a known place to similar neighborhoods in another region.
    Request JSON: {"place": "East Village, NYC", "region": "London"}
    Response JSON: {"ok": true, "place", "region", "results": [...], "version"}
    """
    config = get_config()

    if request.method == 'OPTIONS':
        return '', 200
    if request.method not in ('GET', 'POST'):
        return method_not_allowed(ALLOW)

    try:
        if request.method == 'GET':
            args = request.args
            if not any(k in args for k in ('place', 'region', 'thisPlace', 'thatRegion')):
                return jsonify({
                    'ok': True,
                    'service': config.SERVICE_NAME,
                    'version': config.service_version,
                    'mode': config.mode,
                })
            data = args.to_dict()
        else:
            data = await read_json_body()

        place, region = _inputs(data)
        if not place or not region:
            return jsonify({
                'ok': False,
                'error': 'Missing fields',
                'details': 'Provide non-empty "place" and "region"',
            }), 400

        if not config.has_llm_credential:
            raise ConfigurationError('OPENAI_API_KEY')

        requester = MatchRequester(_completion_fn())
        outcome = await requester.request_matches(place, region)
        results = await enrich_results(
            outcome.results, config, session=current_app.extensions.get('this_that.http_session')
        )

        body = {
            'ok': True,
            'place': place,
            'region': region,
            'results': results,
            'version': config.service_version,
        }
        if not results:
            body['note'] = EMPTY_NOTE
        return jsonify(body)
    except ConfigurationError as e:
        logger.error(str(e))
        return jsonify({'ok': False, 'error': str(e)}), 500
    except Exception as e:
        logger.exception(f"like handler failed: {e}")
        return jsonify({'ok': False, 'error': str(e) or 'Server error'}), 500


def register(app):
    """Register like blueprint with app"""
    app.register_blueprint(bp)
