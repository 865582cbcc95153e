"""
Shared utilities for provider modules.
"""
import aiohttp
import logging
from typing import Optional, Dict, Any
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)

USER_AGENT = "This=That/1.0 (neighborhood matcher)"


@asynccontextmanager
async def get_session(session: Optional[aiohttp.ClientSession] = None):
    """Context manager for aiohttp session handling.

    If session is provided, yields it.
    If not, creates a new session and closes it after use.
    """
    if session is not None:
        yield session
    else:
        async with aiohttp.ClientSession(headers={"User-Agent": USER_AGENT}) as new_session:
            yield new_session


async def fetch_json(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 10,
    session: Optional[aiohttp.ClientSession] = None,
) -> Optional[Any]:
    """GET a JSON document. Returns None on non-2xx; network errors propagate."""
    async with get_session(session) as sess:
        async with sess.get(
            url,
            params=params,
            headers={"User-Agent": USER_AGENT, **(headers or {})},
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as resp:
            if resp.status >= 300:
                logger.debug(f"GET {url} returned HTTP {resp.status}")
                return None
            return await resp.json(content_type=None)


async def fetch_text(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 10,
    session: Optional[aiohttp.ClientSession] = None,
) -> Optional[str]:
    """GET a text document. Returns None on non-2xx; network errors propagate."""
    async with get_session(session) as sess:
        async with sess.get(
            url,
            params=params,
            headers={"User-Agent": USER_AGENT, **(headers or {})},
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as resp:
            if resp.status >= 300:
                logger.debug(f"GET {url} returned HTTP {resp.status}")
                return None
            return await resp.text()


async def head_ok(url: str, timeout: float = 4, session: Optional[aiohttp.ClientSession] = None) -> bool:
    """True when a HEAD request answers 2xx/3xx."""
    try:
        async with get_session(session) as sess:
            async with sess.head(url, allow_redirects=True, timeout=aiohttp.ClientTimeout(total=timeout)) as resp:
                return resp.status < 400
    except Exception as e:
        logger.debug(f"HEAD {url} failed: {e}")
        return False
