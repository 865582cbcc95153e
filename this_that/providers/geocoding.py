import logging
from typing import Optional, Dict, Any
from urllib.parse import urlencode

import aiohttp

from .utils import fetch_json

logger = logging.getLogger(__name__)

NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
STATIC_MAP_URL = "https://staticmap.openstreetmap.de/staticmap.php"
GMAPS_SEARCH_URL = "https://www.google.com/maps/search/"


async def geocode_place(query: str, timeout: float = 8, session: Optional[aiohttp.ClientSession] = None) -> Optional[Dict[str, float]]:
    """Resolve a free-text place to {lat, lon} with Nominatim's top match, or None."""
    if not query or not query.strip():
        return None
    params = {"q": query, "format": "json", "limit": 1}
    headers = {"Accept-Language": "en"}
    try:
        data = await fetch_json(NOMINATIM_URL, params=params, headers=headers, timeout=timeout, session=session)
        if data:
            return {"lat": float(data[0]["lat"]), "lon": float(data[0]["lon"])}
    except Exception as e:
        logger.debug(f"geocode_place nominatim failed for {query!r}: {e}")
    return None


def gmaps_link(query: str, lat: Optional[float] = None, lon: Optional[float] = None) -> str:
    target = f"{lat},{lon}" if lat is not None and lon is not None else query
    return f"{GMAPS_SEARCH_URL}?{urlencode({'api': 1, 'query': target})}"


def static_map_url(lat: float, lon: float, zoom: int = 14, size: str = "600x300") -> str:
    params = {
        "center": f"{lat},{lon}",
        "zoom": zoom,
        "size": size,
        "markers": f"{lat},{lon},red-pushpin",
    }
    return f"{STATIC_MAP_URL}?{urlencode(params)}"


async def build_map_info(query: str, timeout: float = 8, session: Optional[aiohttp.ClientSession] = None) -> Dict[str, Any]:
    """Map block for a candidate. The Google Maps link is present even when geocoding fails."""
    coords = await geocode_place(query, timeout=timeout, session=session)
    if not coords:
        return {"lat": None, "lon": None, "image": None, "gmaps": gmaps_link(query)}
    lat, lon = coords["lat"], coords["lon"]
    return {
        "lat": lat,
        "lon": lon,
        "image": static_map_url(lat, lon),
        "gmaps": gmaps_link(query, lat, lon),
    }
