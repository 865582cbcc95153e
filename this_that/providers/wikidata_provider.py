"""Wikidata provider for a place's official website.

Searches entities by name, prefers the ones whose description reads like a
populated place, then reads property P856 (official website) from the
entity JSON. No API key required.
"""

import logging
from typing import List, Dict, Any, Optional
from urllib.parse import quote

import aiohttp

from this_that.providers.utils import fetch_json, head_ok

logger = logging.getLogger(__name__)

WIKIDATA_API_URL = "https://www.wikidata.org/w/api.php"
WIKIDATA_ENTITY_URL = "https://www.wikidata.org/wiki/Special:EntityData/{entity_id}.json"

PLACE_WORD_WEIGHTS = [
    (("city",), 3), (("town",), 3), (("village",), 3), (("neighborhood", "neighbourhood"), 3),
    (("borough",), 2), (("hamlet",), 2), (("municipality",), 2),
    (("county",), 1), (("district",), 1), (("tourism",), 1),
]


def score_description(description: str, name: str) -> int:
    d = (description or "").lower()
    score = sum(weight for words, weight in PLACE_WORD_WEIGHTS if any(w in d for w in words))
    head = (name or "").lower().split(",")[0].strip()
    if head and head in d:
        score += 1
    return score


async def search_entity(name: str, timeout: float = 8, session: Optional[aiohttp.ClientSession] = None) -> Optional[str]:
    params = {
        'action': 'wbsearchentities', 'language': 'en', 'format': 'json',
        'search': name, 'type': 'item', 'limit': 5, 'origin': '*',
    }
    data = await fetch_json(WIKIDATA_API_URL, params=params, timeout=timeout, session=session)
    candidates: List[Dict[str, Any]] = [c for c in ((data or {}).get('search') or []) if c and c.get('id')]
    if not candidates:
        return None
    # sorted() is stable, so equal scores keep Wikidata's own ranking
    ranked = sorted(candidates, key=lambda c: score_description(c.get('description', ''), name), reverse=True)
    return ranked[0]['id']


async def official_website(entity_id: str, timeout: float = 8, session: Optional[aiohttp.ClientSession] = None) -> Optional[str]:
    url = WIKIDATA_ENTITY_URL.format(entity_id=quote(entity_id, safe=""))
    data = await fetch_json(url, timeout=timeout, session=session)
    entity = ((data or {}).get('entities') or {}).get(entity_id) or {}
    claims = (entity.get('claims') or {}).get('P856') or []
    if not claims:
        return None
    value = ((claims[0].get('mainsnak') or {}).get('datavalue') or {}).get('value')
    return value if isinstance(value, str) else None


async def guess_tourism_site(name: str, session: Optional[aiohttp.ClientSession] = None) -> Optional[str]:
    """Probe a few conventional tourism domains built from the place name.

    Speculative; only used when ENABLE_TOURISM_GUESS is on.
    """
    token = "".join((name or "").split(",")[0].lower().split())
    if len(token) < 3:
        return None
    for url in (
        f"https://www.{token}.gov",
        f"https://www.{token}.org",
        f"https://visit{token}.com",
        f"https://www.{token}tourism.com",
    ):
        if await head_ok(url, session=session):
            return url
    return None


async def lookup_official_website(
    name: str,
    timeout: float = 8,
    allow_guess: bool = False,
    session: Optional[aiohttp.ClientSession] = None,
) -> Optional[str]:
    """Official website URL for a place name, or None. Never raises."""
    if not name or not name.strip():
        return None
    try:
        entity_id = await search_entity(name, timeout, session)
        if entity_id:
            website = await official_website(entity_id, timeout, session)
            if website:
                return website
    except Exception as e:
        logger.debug(f"wikidata lookup failed for {name!r}: {e}")
    if allow_guess:
        return await guess_tourism_site(name, session)
    return None
