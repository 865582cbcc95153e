import asyncio

from this_that.providers import wikipedia_provider


def make_router(search=None, pageimages=None, summary=None, generator=None, log=None):
    """Fake fetch_json answering the four Wikipedia calls from canned data."""

    async def fake_fetch_json(url, params=None, headers=None, timeout=10, session=None):
        params = params or {}
        if log is not None:
            log.append(params.get("srsearch") or params.get("gsrsearch") or params.get("titles") or url)
        if "/page/summary/" in url:
            return summary
        if params.get("list") == "search":
            return search(params["srsearch"]) if callable(search) else search
        if params.get("generator") == "search":
            return generator
        if params.get("prop") == "pageimages":
            return pageimages
        return None

    return fake_fetch_json


def test_title_lookup_then_pageimage(monkeypatch):
    monkeypatch.setattr(wikipedia_provider, "fetch_json", make_router(
        search={"query": {"search": [{"title": "Shoreditch"}]}},
        pageimages={"query": {"pages": {"1": {"thumbnail": {"source": "https://upload.example/shoreditch.jpg"}}}}},
    ))
    ref = asyncio.run(wikipedia_provider.fetch_place_image("Shoreditch, London"))
    assert ref["url"] == "https://upload.example/shoreditch.jpg"
    assert "Shoreditch" in ref["attribution"]


def test_summary_image_used_when_no_pageimage(monkeypatch):
    monkeypatch.setattr(wikipedia_provider, "fetch_json", make_router(
        search={"query": {"search": [{"title": "Le Marais"}]}},
        pageimages={"query": {"pages": {"1": {"title": "Le Marais"}}}},
        summary={"originalimage": {"source": "https://upload.example/marais.jpg"}},
    ))
    ref = asyncio.run(wikipedia_provider.fetch_place_image("Le Marais, Paris"))
    assert ref["url"] == "https://upload.example/marais.jpg"


def test_generator_search_picks_first_ranked_page_with_thumbnail(monkeypatch):
    monkeypatch.setattr(wikipedia_provider, "fetch_json", make_router(
        search={"query": {"search": []}},
        generator={"query": {"pages": {
            "9": {"title": "Third", "index": 3, "thumbnail": {"source": "https://upload.example/3.jpg"}},
            "7": {"title": "First", "index": 1},
            "8": {"title": "Second", "index": 2, "thumbnail": {"source": "https://upload.example/2.jpg"}},
        }}},
    ))
    ref = asyncio.run(wikipedia_provider.fetch_place_image("Obscure Quarter"))
    assert ref["url"] == "https://upload.example/2.jpg"
    assert "Second" in ref["attribution"]


def test_failures_resolve_to_none(monkeypatch):
    async def broken(*args, **kwargs):
        raise OSError("network down")

    monkeypatch.setattr(wikipedia_provider, "fetch_json", broken)
    assert asyncio.run(wikipedia_provider.fetch_place_image("Anywhere")) is None
    assert asyncio.run(wikipedia_provider.fetch_place_image("   ")) is None


def test_resolve_place_image_falls_back_to_city_query(monkeypatch):
    log = []

    def search(q):
        if q == "Dalston, London, UK":
            return {"query": {"search": []}}
        return {"query": {"search": [{"title": "London"}]}}

    monkeypatch.setattr(wikipedia_provider, "fetch_json", make_router(
        search=search,
        pageimages={"query": {"pages": {"1": {"thumbnail": {"source": "https://upload.example/london.jpg"}}}}},
        generator={"query": {"pages": {}}},
        log=log,
    ))
    ref = asyncio.run(wikipedia_provider.resolve_place_image("Dalston", "London", "UK"))
    assert ref["url"] == "https://upload.example/london.jpg"
    assert "Dalston, London, UK" in log
    assert "London, UK" in log
