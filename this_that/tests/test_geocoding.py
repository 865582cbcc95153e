import asyncio
from urllib.parse import parse_qs, urlparse

from this_that.providers import geocoding


def test_map_link_present_when_geocoding_fails(monkeypatch):
    async def nothing(*args, **kwargs):
        return []

    monkeypatch.setattr(geocoding, "fetch_json", nothing)
    info = asyncio.run(geocoding.build_map_info("Shoreditch, London, UK"))
    assert info["lat"] is None and info["lon"] is None
    assert info["image"] is None
    qs = parse_qs(urlparse(info["gmaps"]).query)
    assert qs["query"] == ["Shoreditch, London, UK"]


def test_map_info_from_coordinates(monkeypatch):
    async def nominatim(url, params=None, headers=None, timeout=10, session=None):
        assert params["limit"] == 1
        return [{"lat": "51.5245", "lon": "-0.0781", "display_name": "Shoreditch"}]

    monkeypatch.setattr(geocoding, "fetch_json", nominatim)
    info = asyncio.run(geocoding.build_map_info("Shoreditch, London"))
    assert info["lat"] == 51.5245
    assert info["lon"] == -0.0781
    assert "51.5245%2C-0.0781" in info["image"]
    assert parse_qs(urlparse(info["gmaps"]).query)["query"] == ["51.5245,-0.0781"]


def test_geocode_swallows_errors(monkeypatch):
    async def broken(*args, **kwargs):
        raise TimeoutError("slow")

    monkeypatch.setattr(geocoding, "fetch_json", broken)
    assert asyncio.run(geocoding.geocode_place("Somewhere")) is None
    assert asyncio.run(geocoding.geocode_place("")) is None
