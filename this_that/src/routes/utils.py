"""
Helpers shared by the route blueprints: body parsing, CORS and method guards.
"""
import json
import logging
from fnmatch import fnmatch
from typing import Any, Dict, List, Optional

from quart import current_app, jsonify, request

from this_that.config import Config

logger = logging.getLogger(__name__)

ALLOWED_HEADERS = "Content-Type, Authorization"


def get_config() -> Config:
    return current_app.config["THIS_THAT"]


async def read_json_body() -> Dict[str, Any]:
    """Request body as a dict.

    Accepts a normal JSON object, a JSON-encoded string holding the object
    (some front ends double-encode) or nothing at all. Anything unparsable,
    including bytes that are not UTF-8, becomes {} so that field validation
    produces the 400.
    """
    raw = (await request.get_data()).decode("utf-8", errors="replace")
    if not raw or not raw.strip():
        return {}
    try:
        data = json.loads(raw)
        if isinstance(data, str):
            data = json.loads(data)
    except (json.JSONDecodeError, TypeError):
        logger.info("request body is not valid JSON")
        return {}
    return data if isinstance(data, dict) else {}


def pick_origin(origin: Optional[str], allowed: List[str]) -> str:
    """Value for Access-Control-Allow-Origin."""
    if '*' in allowed:
        return '*'
    if origin and any(origin == a or fnmatch(origin, a) for a in allowed):
        return origin
    return allowed[0]


def apply_cors(response, methods: str = "GET, POST, OPTIONS"):
    """CORS headers for every response. A blueprint that allows fewer methods sets its own list first."""
    config = get_config()
    response.headers['Access-Control-Allow-Origin'] = pick_origin(
        request.headers.get('Origin'), config.match_config.allowed_origins
    )
    response.headers.setdefault('Access-Control-Allow-Methods', methods)
    response.headers['Access-Control-Allow-Headers'] = ALLOWED_HEADERS
    if not config.match_config.allows_any_origin():
        response.headers['Vary'] = 'Origin'
    return response


def method_not_allowed(allow: str):
    resp = jsonify({'ok': False, 'error': f"Method {request.method} not allowed", 'allow': allow})
    resp.status_code = 405
    resp.headers['Allow'] = allow
    return resp
