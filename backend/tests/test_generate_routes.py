"""Integration tests for generation and code download routes."""

from __future__ import annotations

import io
import zipfile

from backend.deps import get_entitlements
from backend.main import app
from backend.services.entitlements import Entitlements


class TestGenerate:
    async def test_generates_each_target(self, client, pages):
        res = await client.post(
            "/api/generate",
            json={"pages": pages, "targets": ["web", "service"], "projectName": "Acme Launch"},
        )
        assert res.status_code == 200
        projects = res.json()["projects"]
        assert sorted(projects) == ["service", "web"]
        assert projects["web"]["metadata"] == {
            "framework": "nextjs",
            "entryPoint": "src/app/page.tsx",
            "manifest": "package.json",
        }
        assert "package.json" in projects["web"]["files"]
        assert "requirements.txt" in projects["service"]["files"]

    async def test_same_request_same_output(self, client, pages):
        body = {"pages": pages, "targets": ["mobile"], "projectName": "Acme Launch"}
        first = (await client.post("/api/generate", json=body)).json()
        second = (await client.post("/api/generate", json=body)).json()
        assert first == second

    async def test_tree_problems_come_back_as_warnings(self, client, pages):
        pages[1]["content"].append({"type": "text", "content": {"innerText": "orphan"}})
        res = await client.post("/api/generate", json={"pages": pages, "targets": ["web"], "projectName": "Acme"})
        assert res.status_code == 200
        warnings = res.json()["warnings"]
        assert [w["code"] for w in warnings] == ["missing_id"]
        assert warnings[0]["details"]["page"] == "Pricing"

    async def test_validation_errors(self, client, pages):
        res = await client.post("/api/generate", json={"pages": pages, "targets": [], "projectName": "Acme"})
        assert res.status_code == 422
        res = await client.post("/api/generate", json={"pages": pages, "targets": ["watch"], "projectName": "Acme"})
        assert res.status_code == 422

        pages[0]["content"] = "{broken"
        res = await client.post("/api/generate", json={"pages": pages, "targets": ["web"], "projectName": "Acme"})
        assert res.status_code == 400

    async def test_export_gate(self, client, pages):
        app.dependency_overrides[get_entitlements] = lambda: Entitlements(export_enabled=False)
        res = await client.post("/api/generate", json={"pages": pages, "targets": ["web"], "projectName": "Acme"})
        assert res.status_code == 403


class TestCachedProject:
    async def test_cached_after_generation(self, client, pages):
        body = {"pages": pages, "targets": ["web"], "projectName": "Acme", "pageId": "funnel_1"}
        generated = (await client.post("/api/generate", json=body)).json()["projects"]["web"]

        res = await client.get("/api/generate/funnel_1/web")
        assert res.status_code == 200
        assert res.json() == generated
        etag = res.headers["etag"]

        res = await client.get("/api/generate/funnel_1/web", headers={"If-None-Match": etag})
        assert res.status_code == 304

    async def test_not_cached(self, client):
        assert (await client.get("/api/generate/funnel_9/web")).status_code == 404
        assert (await client.get("/api/generate/funnel_9/desktop")).status_code == 404


class TestExport:
    async def test_zip_download(self, client, pages):
        res = await client.post(
            "/api/export",
            json={"pages": pages, "target": "service", "projectName": "Acme Launch"},
        )
        assert res.status_code == 200
        assert res.headers["content-type"] == "application/zip"
        assert 'filename="acme-launch-service.zip"' in res.headers["content-disposition"]

        archive = zipfile.ZipFile(io.BytesIO(res.content))
        assert "app.py" in archive.namelist()
        assert "requirements.txt" in archive.namelist()

    async def test_export_gate(self, client, pages):
        app.dependency_overrides[get_entitlements] = lambda: Entitlements(export_enabled=False)
        res = await client.post("/api/export", json={"pages": pages, "target": "web", "projectName": "Acme"})
        assert res.status_code == 403
