"""
Admin routes: Health checks
"""
import time

from quart import Blueprint, current_app, jsonify

from .utils import get_config

bp = Blueprint('admin', __name__)


@bp.route('/healthz')
async def healthz():
    """Lightweight health endpoint returning component status."""
    config = get_config()
    status = {
        'app': 'ok',
        'time': time.time(),
        'version': config.service_version,
        'ready': current_app.extensions.get('this_that.http_session') is not None,
        'openai': config.has_llm_credential,
        'model': config.openai.model,
        'tourism_guess': config.match_config.enable_tourism_guess,
    }
    return jsonify(status)


def register(app):
    """Register admin blueprint with app"""
    app.register_blueprint(bp)
