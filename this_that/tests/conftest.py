"""
Pytest configuration for This=That tests.

This file is automatically loaded by pytest and sets up the test environment.
"""
import json
import os

import pytest

from this_that.config import Config, OpenAIConfig


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment variables before any tests run."""
    os.environ["ENVIRONMENT"] = "testing"
    yield
    os.environ.pop("ENVIRONMENT", None)


class StubCompletion:
    """Deterministic completion function: returns canned replies in order and records prompts."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def __call__(self, messages):
        self.calls.append(messages)
        if not self.replies:
            return "not json"
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, (dict, list)):
            return json.dumps(reply)
        return reply


def three_matches():
    return {
        "results": [
            {"rank": 1, "match": "Shoreditch", "city": "London", "region": "UK", "score": 0.9,
             "tags": ["nightlife", "street art", "vintage"]},
            {"rank": 2, "match": "Dalston", "city": "London", "region": "UK", "score": 0.8},
            {"rank": 3, "match": "Peckham", "city": "London", "region": "UK", "score": 0.7},
        ]
    }


@pytest.fixture
def config():
    return Config(openai=OpenAIConfig(api_key="test-key"))


@pytest.fixture
def no_enrichment(monkeypatch):
    """Replace every enrichment provider with a fast deterministic fake."""
    from this_that.providers import geocoding, news_provider, wikidata_provider, wikipedia_provider

    async def fake_image(match, city, region, **kwargs):
        return {"url": f"https://img.example/{match}.jpg", "attribution": "Image via Wikipedia: test"}

    async def fake_news(query, negative_keywords, travel_domain_pattern=None, **kwargs):
        return None

    async def fake_map(query, **kwargs):
        return {"lat": None, "lon": None, "image": None, "gmaps": geocoding.gmaps_link(query)}

    async def fake_website(name, **kwargs):
        return None

    monkeypatch.setattr(wikipedia_provider, "resolve_place_image", fake_image)
    monkeypatch.setattr(news_provider, "fetch_news", fake_news)
    monkeypatch.setattr(geocoding, "build_map_info", fake_map)
    monkeypatch.setattr(wikidata_provider, "lookup_official_website", fake_website)


@pytest.fixture
def app_factory(config):
    """Build a Quart app around the test config and a given completion stub."""
    from this_that.src.app import create_app

    def make(complete, cfg=None):
        app = create_app(cfg or config, complete=complete)
        app.config["TESTING"] = True
        return app

    return make


@pytest.fixture
def make_stub():
    return StubCompletion


@pytest.fixture
def matches_payload():
    return three_matches()
