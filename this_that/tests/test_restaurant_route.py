import asyncio
import json
from urllib.parse import parse_qs, urlparse

import pytest


def post(app, body=None, method="POST"):
    async def run():
        client = app.test_client()
        kwargs = {"json": body} if body is not None else {}
        resp = await client.open("/api/like-restaurant", method=method, **kwargs)
        text = await resp.get_data(as_text=True)
        return resp.status_code, (json.loads(text) if text else None), resp.headers

    return asyncio.run(run())


def test_three_matches_with_map_links(app_factory, make_stub):
    stub = make_stub()
    status, data, headers = post(app_factory(stub), {
        "this": {"name": "Katz's Delicatessen", "lat": 40.7223, "lng": -73.9874},
        "that": {"area": "Copenhagen"},
    })
    assert status == 200
    matches = data["matches"]
    assert len(matches) == 3
    assert all(m["name"].endswith("• Copenhagen") for m in matches)
    assert "40.722, -73.987" in matches[0]["why"]
    assert parse_qs(urlparse(matches[1]["mapUrl"]).query)["query"] == ["deli near Copenhagen"]
    assert headers["Access-Control-Allow-Origin"] == "*"
    assert stub.calls == []


def test_missing_fields(app_factory, make_stub):
    status, data, _ = post(app_factory(make_stub()), {"this": {"name": "  "}, "that": {"area": "Oslo"}})
    assert status == 400
    assert data["details"] == "Provide this.name and that.area"


def test_only_post(app_factory, make_stub):
    status, _, headers = post(app_factory(make_stub()), method="GET")
    assert status == 405
    assert headers["Allow"] == "POST, OPTIONS"


@pytest.mark.parametrize("raw", ["not json", b"\xff\xfe"])
def test_unparsable_body_is_400(app_factory, make_stub, raw):
    async def run():
        client = app_factory(make_stub()).test_client()
        resp = await client.post("/api/like-restaurant", data=raw, headers={"Content-Type": "application/json"})
        return resp.status_code, json.loads(await resp.get_data(as_text=True))

    status, data = asyncio.run(run())
    assert status == 400
    assert data["error"] == "Missing fields"


def test_responses_advertise_only_post(app_factory, make_stub):
    status, _, headers = post(app_factory(make_stub()), method="OPTIONS")
    assert status == 200
    assert headers["Access-Control-Allow-Methods"] == "POST, OPTIONS"
