import re
import logging
from typing import Optional, Dict, Any, List
from urllib.parse import quote

import aiohttp

from this_that.providers.utils import fetch_json

logger = logging.getLogger(__name__)

WIKI_API_URL = "https://{lang}.wikipedia.org/w/api.php"
WIKI_SUMMARY_URL = "https://{lang}.wikipedia.org/api/rest_v1/page/summary/{title}"
WIKI_PAGE_URL = "https://{lang}.wikipedia.org/wiki/{title}"
THUMB_SIZE = 800


def _slug(title: str) -> str:
    return quote(re.sub(r"\s+", "_", title.strip()), safe="")


def _image_ref(url: str, title: str, lang: str) -> Dict[str, str]:
    return {
        'url': url,
        'attribution': f"Image via Wikipedia: {title} ({WIKI_PAGE_URL.format(lang=lang, title=_slug(title))})",
    }


async def search_title(query: str, lang: str = "en", timeout: float = 8, session: Optional[aiohttp.ClientSession] = None) -> Optional[str]:
    """Best-matching article title for a free-text query."""
    params = {
        'action': 'query', 'list': 'search', 'srsearch': query,
        'srlimit': 1, 'format': 'json', 'origin': '*',
    }
    data = await fetch_json(WIKI_API_URL.format(lang=lang), params=params, timeout=timeout, session=session)
    hits = ((data or {}).get('query') or {}).get('search') or []
    return hits[0].get('title') if hits else None


async def page_thumbnail(title: str, lang: str = "en", timeout: float = 8, session: Optional[aiohttp.ClientSession] = None) -> Optional[str]:
    params = {
        'action': 'query', 'prop': 'pageimages', 'titles': title,
        'piprop': 'thumbnail', 'pithumbsize': THUMB_SIZE, 'format': 'json', 'origin': '*',
    }
    data = await fetch_json(WIKI_API_URL.format(lang=lang), params=params, timeout=timeout, session=session)
    pages = ((data or {}).get('query') or {}).get('pages') or {}
    for page in pages.values():
        src = (page.get('thumbnail') or {}).get('source')
        if src:
            return src
    return None


async def summary_image(title: str, lang: str = "en", timeout: float = 8, session: Optional[aiohttp.ClientSession] = None) -> Optional[str]:
    url = WIKI_SUMMARY_URL.format(lang=lang, title=_slug(title))
    data = await fetch_json(url, timeout=timeout, session=session) or {}
    return (data.get('thumbnail') or {}).get('source') or (data.get('originalimage') or {}).get('source')


async def generator_search_image(query: str, lang: str = "en", timeout: float = 8, session: Optional[aiohttp.ClientSession] = None) -> Optional[Dict[str, str]]:
    """First search hit (by search rank) that carries a thumbnail, as (title, url)."""
    params = {
        'action': 'query', 'generator': 'search', 'gsrsearch': query, 'gsrlimit': 5,
        'prop': 'pageimages', 'piprop': 'thumbnail', 'pithumbsize': THUMB_SIZE,
        'format': 'json', 'origin': '*',
    }
    data = await fetch_json(WIKI_API_URL.format(lang=lang), params=params, timeout=timeout, session=session)
    pages: List[Dict[str, Any]] = list((((data or {}).get('query') or {}).get('pages') or {}).values())
    pages.sort(key=lambda p: p.get('index', 1_000))
    for page in pages:
        src = (page.get('thumbnail') or {}).get('source')
        if src:
            return {'title': page.get('title') or query, 'url': src}
    return None


async def fetch_place_image(query: str, lang: str = "en", timeout: float = 8, session: Optional[aiohttp.ClientSession] = None) -> Optional[Dict[str, str]]:
    """Illustrative image for one query: title lookup, then summary, then generator search.

    Returns {url, attribution} or None. Never raises.
    """
    if not query or not query.strip():
        return None
    try:
        title = await search_title(query, lang, timeout, session)
        if title:
            src = await page_thumbnail(title, lang, timeout, session)
            if not src:
                src = await summary_image(title, lang, timeout, session)
            if src:
                return _image_ref(src, title, lang)
        hit = await generator_search_image(query, lang, timeout, session)
        if hit:
            return _image_ref(hit['url'], hit['title'], lang)
    except Exception as e:
        logger.debug(f"[WIKI] image lookup failed for {query!r}: {e}")
    return None


async def resolve_place_image(
    match: str,
    city: str,
    region: str,
    lang: str = "en",
    timeout: float = 8,
    session: Optional[aiohttp.ClientSession] = None,
) -> Optional[Dict[str, str]]:
    """Try the specific "match, city, region" query, then the broader "city, region"."""
    specific = ", ".join(p for p in (match, city, region) if p)
    broad = ", ".join(p for p in (city, region) if p)
    for q in dict.fromkeys(q for q in (specific, broad) if q):
        ref = await fetch_place_image(q, lang, timeout, session)
        if ref:
            return ref
    return None
