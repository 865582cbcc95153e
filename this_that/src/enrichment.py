"""
Candidate enrichment for This=That
Attaches image, news, map and official website to each matched neighborhood
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from this_that.config import Config
from this_that.providers import geocoding, news_provider, wikidata_provider, wikipedia_provider
from this_that.utils.async_utils import try_with_timeout

logger = logging.getLogger(__name__)


def candidate_query(result: Dict[str, Any]) -> str:
    return ", ".join(p for p in (result.get('match'), result.get('city'), result.get('region')) if p)


async def enrich_result(result: Dict[str, Any], config: Config, session: Optional[aiohttp.ClientSession] = None) -> Dict[str, Any]:
    """
    Run every lookup for one candidate concurrently.

    Each lookup resolves to its value or None; a failing lookup never
    affects the others or the candidate itself.
    """
    query = candidate_query(result)
    timeouts = config.timeout_config
    policy = config.match_config

    # The image resolver tries two queries, so it gets two slots of time
    image, news, map_info, website = await asyncio.gather(
        try_with_timeout(
            lambda: wikipedia_provider.resolve_place_image(
                result.get('match', ''), result.get('city', ''), result.get('region', ''),
                timeout=timeouts.image, session=session,
            ),
            timeouts.image * 2,
            label="image",
        ),
        try_with_timeout(
            lambda: news_provider.fetch_news(
                query, policy.negative_keywords, policy.travel_domain_pattern,
                timeout=timeouts.news, session=session,
            ),
            timeouts.news * 2,
            label="news",
        ),
        try_with_timeout(
            lambda: geocoding.build_map_info(query, timeout=timeouts.geo, session=session),
            timeouts.geo,
            label="map",
        ),
        try_with_timeout(
            lambda: wikidata_provider.lookup_official_website(
                query, timeout=timeouts.wikidata, allow_guess=policy.enable_tourism_guess, session=session,
            ),
            timeouts.wikidata * 2,
            label="tourismUrl",
        ),
    )
    return {**result, 'image': image, 'news': news, 'map': map_info, 'tourismUrl': website}


async def enrich_results(results: List[Dict[str, Any]], config: Config, session: Optional[aiohttp.ClientSession] = None) -> List[Dict[str, Any]]:
    """Enrich all candidates concurrently; output order follows input order."""
    if not results:
        return []
    enriched = await asyncio.gather(*(enrich_result(r, config, session) for r in results))
    logger.debug(f"enriched {len(enriched)} candidates")
    return list(enriched)
