"""
This=That Quart application
"""

import logging
import os
from typing import Optional

import aiohttp
from dotenv import load_dotenv
from quart import Quart, jsonify
from werkzeug.exceptions import HTTPException

from this_that.config import Config, setup_logging
from this_that.providers.openai_provider import CompletionFn
from this_that.providers.utils import USER_AGENT
from .routes import register_blueprints
from .routes.utils import apply_cors

logger = logging.getLogger(__name__)


def create_app(config: Optional[Config] = None, complete: Optional[CompletionFn] = None) -> Quart:
    """Build the app around an explicit configuration.

    Args:
        config: Settings; read from the environment when omitted
        complete: Completion function used instead of the OpenAI client (tests, other providers)
    """
    config = config or Config()

    app = Quart(__name__)
    app.config["THIS_THAT"] = config
    app.extensions['this_that.completion'] = complete
    app.extensions['this_that.http_session'] = None

    register_blueprints(app)

    @app.after_request
    async def _add_cors_headers(response):
        return apply_cors(response)

    @app.errorhandler(Exception)
    async def _unhandled(e):
        if isinstance(e, HTTPException):
            return jsonify({'ok': False, 'error': e.name}), e.code
        logger.exception(f"unhandled error: {e}")
        return jsonify({'ok': False, 'error': str(e) or 'Server error'}), 500

    @app.before_serving
    async def startup():
        app.extensions['this_that.http_session'] = aiohttp.ClientSession(headers={"User-Agent": USER_AGENT})
        logger.info(f"{config.SERVICE_NAME} {config.service_version} ready (mode={config.mode})")

    @app.after_serving
    async def shutdown():
        session = app.extensions.get('this_that.http_session')
        if session:
            await session.close()
        app.extensions['this_that.http_session'] = None

    return app


if __name__ == "__main__":
    load_dotenv()
    settings = Config()
    setup_logging(settings)
    port = int(os.getenv("PORT", "5000"))
    create_app(settings).run(host="0.0.0.0", port=port, debug=settings.debug)
