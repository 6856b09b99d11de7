"""Integration tests for POST /api/preview."""

from __future__ import annotations

import json


def tree():
    return [
        {
            "id": "hero",
            "type": "container",
            "name": "Hero",
            "styles": {"padding": "8px"},
            "content": [
                {"id": "t", "type": "heading", "name": "T", "styles": {}, "content": {"innerText": "Hello", "level": 2}},
                {"id": "x", "type": "text", "name": "X", "styles": {}, "content": {"innerText": "<script>alert(1)</script>"}},
            ],
        }
    ]


class TestPreview:
    async def test_renders_document(self, client):
        res = await client.post("/api/preview", json={"elements": tree(), "pageMeta": {"title": "Launch"}})
        assert res.status_code == 200
        assert res.headers["content-type"].startswith("text/html")
        assert "<title>Launch</title>" in res.text
        assert "<h2" in res.text
        assert "<script>alert(1)</script>" not in res.text
        assert "&lt;script&gt;" in res.text

    async def test_standalone_headers(self, client):
        res = await client.post("/api/preview", json={"elements": tree()})
        assert res.headers["x-frame-options"] == "DENY"
        assert res.headers["content-security-policy"] == "frame-ancestors 'none'"
        assert res.headers["cache-control"] == "no-store"

    async def test_embedded_headers(self, client):
        res = await client.post("/api/preview", json={"elements": tree(), "mode": {"embedded": True}})
        assert "x-frame-options" not in res.headers
        assert res.headers["content-security-policy"] == "frame-ancestors *"

    async def test_live_indicator_only_outside_embedding(self, client):
        live = await client.post("/api/preview", json={"elements": tree(), "mode": {"live": True}})
        embedded = await client.post("/api/preview", json={"elements": tree(), "mode": {"live": True, "embedded": True}})
        assert "LIVE PREVIEW" in live.text
        assert "LIVE PREVIEW" not in embedded.text

    async def test_elements_as_json_string(self, client):
        res = await client.post("/api/preview", json={"elements": json.dumps(tree())})
        assert res.status_code == 200
        assert "Hello" in res.text

    async def test_bad_input(self, client):
        assert (await client.post("/api/preview", json={"elements": []})).status_code == 400
        assert (await client.post("/api/preview", json={"elements": "{nope"})).status_code == 400
        assert (await client.post("/api/preview", json={"elements": tree(), "mode": {"dark": True}})).status_code == 422


class TestHealth:
    async def test_health(self, client):
        res = await client.get("/health")
        assert res.status_code == 200
        assert res.json() == {"status": "ok"}
