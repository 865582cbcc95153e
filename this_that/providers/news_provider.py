"""News provider: picks one hotel/travel roundup article per candidate.

Google News RSS search is queried with "where to stay" phrasing, a site
allow-list of travel publishers and the configured negative keywords as
exclusions. Items are parsed with feedparser, filtered for negative
keywords and scored by title phrasing and publisher domain.
"""

import re
import logging
import asyncio
from dataclasses import dataclass, asdict
from typing import List, Optional, Pattern, Dict, Any
from urllib.parse import urlparse

import aiohttp
import feedparser

from this_that.providers.utils import fetch_text
from this_that.src.snippet_filters import (
    sanitize_text,
    extract_field,
    extract_item_blocks,
    keyword_pattern,
    safe_trim,
)

logger = logging.getLogger(__name__)

GOOGLE_NEWS_RSS_URL = "https://news.google.com/rss/search"
MAX_FEED_ITEMS = 12

HOTEL_PHRASES = ['"where to stay"', '"best hotels"', '"hotel guide"', '"boutique hotels"']
FOOD_TRAVEL_PHRASES = ['"best restaurants"', '"where to eat"', '"travel guide"', '"things to do"']

SITE_ALLOW_LIST = [
    'cntraveler.com', 'travelandleisure.com', 'lonelyplanet.com', 'timeout.com',
    'afar.com', 'fodors.com', 'theguardian.com', 'nytimes.com',
]

MAJOR_TRAVEL_DOMAINS = re.compile(
    r"(cntraveler|travelandleisure|lonelyplanet|timeout|afar|fodors|nationalgeographic)", re.IGNORECASE
)
HOSPITALITY_DOMAINS = re.compile(r"(hospitalitynet|skift|hotelnewsnow|hoteldive|hotelier|costar)", re.IGNORECASE)

STAY_TERMS = re.compile(
    r"\b(hotels?|where to stay|stay(?:s|ing)?|accommodations?|boutique|resorts?|inns?|b&b)\b", re.IGNORECASE
)
FOOD_ROUNDUP_TERMS = re.compile(
    r"\b(best restaurants|where to eat|food guide|places to eat|best bars|foodie)\b", re.IGNORECASE
)


@dataclass
class FeedItem:
    title: str
    link: str
    description: str = ""
    image: Optional[str] = None
    domain: str = ""


def build_news_query(query: str, negative_keywords: List[str], broad: bool = False) -> str:
    """Provider query string for one candidate.

    The hotel-biased form restricts to the travel-publisher allow-list; the
    broad form swaps in food/travel phrasing and drops the site filter.
    """
    phrases = FOOD_TRAVEL_PHRASES if broad else HOTEL_PHRASES
    parts = [query.strip(), "(" + " OR ".join(phrases) + ")"]
    if not broad:
        parts.append("(" + " OR ".join(f"site:{d}" for d in SITE_ALLOW_LIST) + ")")
    parts.extend(f"-{k}" if " " not in k else f'-"{k}"' for k in negative_keywords)
    return " ".join(p for p in parts if p)


def _domain_of(url: str) -> str:
    try:
        host = urlparse(url).netloc.lower()
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host


def _entry_image(entry: Dict[str, Any]) -> Optional[str]:
    for key in ('media_content', 'media_thumbnail'):
        for media in entry.get(key) or []:
            if media.get('url'):
                return media['url']
    for enc in entry.get('enclosures') or []:
        if enc.get('href') and (enc.get('type') or '').startswith('image'):
            return enc['href']
    return None


def parse_feed_items(xml: str, limit: int = MAX_FEED_ITEMS) -> List[FeedItem]:
    """Parse an RSS document into at most limit FeedItems.

    feedparser handles well-formed and most sloppy feeds. When it finds no
    entries in a document that still has <item> blocks, the fields are
    pulled out of each block directly. Anything unusable yields [].
    """
    if not xml or not xml.strip():
        return []

    items: List[FeedItem] = []
    parsed = feedparser.parse(xml)
    for entry in parsed.entries[:limit]:
        link = entry.get('link') or ''
        source = entry.get('source') or {}
        title = sanitize_text(entry.get('title'))
        if not title or not link:
            continue
        items.append(FeedItem(
            title=title,
            link=link,
            description=sanitize_text(entry.get('summary') or entry.get('description')),
            image=_entry_image(entry),
            domain=_domain_of(source.get('href') or '') or _domain_of(link),
        ))

    if items or parsed.entries:
        return items

    if parsed.get('bozo'):
        logger.debug(f"feedparser gave up on feed: {parsed.get('bozo_exception')}")
    for block in extract_item_blocks(xml, limit):
        title = extract_field(block, 'title')
        link = extract_field(block, 'link')
        if not title or not link:
            continue
        source_url = extract_field(block, 'source', 'url')
        items.append(FeedItem(
            title=title,
            link=link,
            description=extract_field(block, 'description'),
            image=extract_field(block, 'media:content', 'url') or extract_field(block, 'enclosure', 'url') or None,
            domain=_domain_of(source_url) or _domain_of(link),
        ))
    return items


def score_item(item: FeedItem, travel_domain_pattern: Optional[Pattern] = None) -> int:
    score = 0
    if STAY_TERMS.search(item.title):
        score += 6
    domain = item.domain or _domain_of(item.link)
    if MAJOR_TRAVEL_DOMAINS.search(domain):
        score += 3
    elif HOSPITALITY_DOMAINS.search(domain):
        score += 2
    elif travel_domain_pattern is not None and travel_domain_pattern.search(domain):
        score += 1
    if FOOD_ROUNDUP_TERMS.search(f"{item.title} {item.description}"):
        score += 1
    return score


def select_article(
    items: List[FeedItem],
    negative_keywords: List[str],
    travel_domain_pattern: Optional[Pattern] = None,
) -> Optional[FeedItem]:
    """Best-scoring negative-free item; first negative-free item when nothing scores."""
    neg = keyword_pattern(negative_keywords)
    clean = [it for it in items if not (neg and neg.search(f"{it.title} {it.description}"))]
    if not clean:
        return None

    best, best_score = None, 0
    for it in clean:
        s = score_item(it, travel_domain_pattern)
        if s > best_score:
            best, best_score = it, s
    return best or clean[0]


def to_news_item(item: FeedItem) -> Dict[str, Any]:
    data = asdict(item)
    return {
        'title': data['title'],
        'url': data['link'],
        'image': data['image'],
        'snippet': safe_trim(data['description'], 240),
    }


async def _fetch_feed(q: str, timeout: float, session: Optional[aiohttp.ClientSession]) -> List[FeedItem]:
    params = {'q': q, 'hl': 'en-US', 'gl': 'US', 'ceid': 'US:en'}
    try:
        xml = await asyncio.wait_for(
            fetch_text(GOOGLE_NEWS_RSS_URL, params=params, timeout=timeout, session=session),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.info(f"news feed timed out for {q[:60]!r}")
        return []
    return parse_feed_items(xml or "")


async def fetch_news(
    query: str,
    negative_keywords: List[str],
    travel_domain_pattern: Optional[Pattern] = None,
    timeout: float = 6.0,
    session: Optional[aiohttp.ClientSession] = None,
) -> Optional[Dict[str, Any]]:
    """Find one roundup-style article for a place, or None.

    The broad food/travel pass only runs when the hotel pass finds nothing.
    """
    if not query or not query.strip():
        return None

    for broad in (False, True):
        q = build_news_query(query, negative_keywords, broad=broad)
        items = await _fetch_feed(q, timeout, session)
        picked = select_article(items, negative_keywords, travel_domain_pattern)
        if picked:
            logger.debug(f"news for {query!r}: {picked.title!r} ({picked.domain})")
            return to_news_item(picked)
    return None
