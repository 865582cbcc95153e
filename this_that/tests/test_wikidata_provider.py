import asyncio

from this_that.providers import wikidata_provider
from this_that.providers.wikidata_provider import score_description


def test_score_description_prefers_places():
    assert score_description("city in Denmark", "Aarhus") == 3
    assert score_description("neighbourhood of London", "Shoreditch") == 3
    assert score_description("hamlet in Sullivan County, New York", "Narrowsburg, NY") == 3
    assert score_description("American rock band", "Narrowsburg") == 0
    assert score_description("Narrowsburg village", "Narrowsburg, NY") == 4


def test_lookup_reads_p856_from_best_ranked_entity(monkeypatch):
    seen = []

    async def fake_fetch_json(url, params=None, headers=None, timeout=10, session=None):
        if params and params.get("action") == "wbsearchentities":
            return {"search": [
                {"id": "Q1", "description": "1998 film"},
                {"id": "Q2", "description": "town in Denmark"},
            ]}
        seen.append(url)
        return {"entities": {"Q2": {"claims": {"P856": [
            {"mainsnak": {"datavalue": {"value": "https://www.visitaarhus.com"}}}
        ]}}}}

    monkeypatch.setattr(wikidata_provider, "fetch_json", fake_fetch_json)
    url = asyncio.run(wikidata_provider.lookup_official_website("Aarhus, Denmark"))
    assert url == "https://www.visitaarhus.com"
    assert seen == ["https://www.wikidata.org/wiki/Special:EntityData/Q2.json"]


def test_lookup_without_claim_and_without_guess(monkeypatch):
    async def fake_fetch_json(url, params=None, headers=None, timeout=10, session=None):
        if params:
            return {"search": [{"id": "Q5", "description": "city"}]}
        return {"entities": {"Q5": {"claims": {}}}}

    async def must_not_probe(*args, **kwargs):
        raise AssertionError("guessing is disabled")

    monkeypatch.setattr(wikidata_provider, "fetch_json", fake_fetch_json)
    monkeypatch.setattr(wikidata_provider, "head_ok", must_not_probe)
    assert asyncio.run(wikidata_provider.lookup_official_website("Nowhere")) is None


def test_guess_used_only_when_enabled(monkeypatch):
    async def no_results(*args, **kwargs):
        return {"search": []}

    probed = []

    async def fake_head_ok(url, timeout=4, session=None):
        probed.append(url)
        return url == "https://visitboulder.com"

    monkeypatch.setattr(wikidata_provider, "fetch_json", no_results)
    monkeypatch.setattr(wikidata_provider, "head_ok", fake_head_ok)
    url = asyncio.run(wikidata_provider.lookup_official_website("Boulder, CO", allow_guess=True))
    assert url == "https://visitboulder.com"
    assert probed[0] == "https://www.boulder.gov"
