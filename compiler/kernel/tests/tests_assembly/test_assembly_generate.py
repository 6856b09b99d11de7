"""
Compiler Assembly -- Generation and Cache Tests

Request validation happens before any emitter runs. Generation writes
through to the bundle cache keyed by (page_id, target); a failing cache
never changes what generation returns.
"""

import io
import json
import zipfile

import pytest

from compiler.kernel.assembly import (
    BundleStorage,
    CompilerAssembly,
    GenerationInputError,
    MemoryBundleStorage,
    export_zip,
    parse_generation_request,
)

# ============================================================================
# Request validation
# ============================================================================


class TestParseRequest:
    def test_valid_request(self, raw_pages):
        request = parse_generation_request(
            {"pages": raw_pages, "targets": ["web", "service"], "projectName": "Acme", "pageId": "funnel_1"}
        )
        assert [p.name for p in request.pages] == ["Home", "Pricing"]
        assert request.targets == ["web", "service"]
        assert request.meta.name == "Acme"
        assert request.page_id == "funnel_1"

    def test_single_target_key(self, raw_pages):
        request = parse_generation_request({"pages": raw_pages, "target": "mobile", "projectName": "Acme"})
        assert request.targets == ["mobile"]

    def test_duplicate_targets_collapse(self, raw_pages):
        request = parse_generation_request({"pages": raw_pages, "targets": ["web", "web"], "projectName": "Acme"})
        assert request.targets == ["web"]

    @pytest.mark.parametrize(
        "body, message",
        [
            ({"targets": ["web"], "projectName": "Acme"}, "page"),
            ({"pages": [], "targets": ["web"], "projectName": "Acme"}, "page"),
            ({"pages": [{"name": "Home", "content": []}], "projectName": "Acme"}, "target"),
            ({"pages": [{"name": "Home", "content": []}], "targets": [], "projectName": "Acme"}, "target"),
            ({"pages": [{"name": "Home", "content": []}], "targets": ["desktop"], "projectName": "Acme"}, "desktop"),
            ({"pages": [{"name": "Home", "content": []}], "targets": ["web"]}, "projectName"),
            ({"pages": [{"name": "Home", "content": "{not json"}], "targets": ["web"], "projectName": "A"}, "JSON"),
            ({"pages": [{"name": "Home", "content": {"id": "x"}}], "targets": ["web"], "projectName": "A"}, "list"),
            ({"pages": ["Home"], "targets": ["web"], "projectName": "A"}, "object"),
        ],
    )
    def test_invalid_requests(self, body, message):
        with pytest.raises(GenerationInputError, match=message):
            parse_generation_request(body)

    def test_duplicate_routes_are_rejected(self):
        with pytest.raises(GenerationInputError, match="share the route"):
            parse_generation_request(
                {
                    "pages": [
                        {"name": "A", "pathName": "/offer", "content": []},
                        {"name": "B", "pathName": "offer", "content": []},
                    ],
                    "targets": ["web"],
                    "projectName": "Acme",
                }
            )

    def test_content_as_json_string(self, raw_pages):
        raw_pages[0]["content"] = json.dumps(raw_pages[0]["content"])
        request = parse_generation_request({"pages": raw_pages, "targets": ["web"], "projectName": "Acme"})
        assert request.pages[0].elements[0].id == "body"

    def test_pages_are_sorted_by_order(self):
        request = parse_generation_request(
            {
                "pages": [
                    {"name": "Thanks", "pathName": "thanks", "order": 2, "content": []},
                    {"name": "Home", "pathName": "", "order": 0, "content": []},
                    {"name": "Offer", "pathName": "offer", "order": 1, "content": []},
                ],
                "targets": ["web"],
                "projectName": "Acme",
            }
        )
        assert [p.name for p in request.pages] == ["Home", "Offer", "Thanks"]

    def test_tree_warnings_carry_the_page_name(self):
        request = parse_generation_request(
            {
                "pages": [{"name": "Home", "content": [{"type": "text", "content": {}}]}],
                "targets": ["web"],
                "projectName": "Acme",
            }
        )
        assert request.warnings[0].code == "missing_id"
        assert request.warnings[0].details["page"] == "Home"


# ============================================================================
# Generation with write-through cache
# ============================================================================


class BrokenStorage(BundleStorage):
    async def get(self, page_id, target):
        raise ConnectionError("cache down")

    async def put(self, page_id, target, project):
        raise ConnectionError("cache down")

    async def delete(self, page_id):
        raise ConnectionError("cache down")


class TestGenerate:
    @pytest.fixture
    def storage(self):
        return MemoryBundleStorage()

    @pytest.fixture
    def assembly(self, storage):
        return CompilerAssembly(storage)

    async def test_generates_each_target(self, assembly, pages, meta):
        projects = await assembly.generate(pages, ["web", "mobile", "service"], meta)
        assert sorted(projects) == ["mobile", "service", "web"]
        assert projects["web"].metadata.manifest == "package.json"
        assert projects["service"].metadata.manifest == "requirements.txt"

    async def test_writes_through_to_cache(self, assembly, storage, pages, meta):
        projects = await assembly.generate(pages, ["web", "mobile"], meta, page_id="funnel_1")
        assert await assembly.cached("funnel_1", "web") == projects["web"]
        assert await assembly.cached("funnel_1", "mobile") == projects["mobile"]
        assert await assembly.cached("funnel_1", "service") is None

    async def test_no_page_id_skips_cache(self, assembly, storage, pages, meta):
        await assembly.generate(pages, ["web"], meta)
        assert storage.bundles == {}

    async def test_regeneration_supersedes(self, assembly, pages, meta, raw_pages):
        await assembly.generate(pages, ["web"], meta, page_id="funnel_1")
        request = parse_generation_request({"pages": raw_pages[:1], "targets": ["web"], "projectName": "Other"})
        newer = await assembly.generate(request.pages, ["web"], request.meta, page_id="funnel_1")
        assert await assembly.cached("funnel_1", "web") == newer["web"]

    async def test_invalidate(self, assembly, pages, meta):
        await assembly.generate(pages, ["web", "service"], meta, page_id="funnel_1")
        await assembly.invalidate("funnel_1")
        assert await assembly.cached("funnel_1", "web") is None
        assert await assembly.cached("funnel_1", "service") is None

    async def test_cache_failure_does_not_affect_generation(self, pages, meta):
        healthy = await CompilerAssembly(MemoryBundleStorage()).generate(pages, ["web"], meta, page_id="p")
        broken = CompilerAssembly(BrokenStorage())
        projects = await broken.generate(pages, ["web"], meta, page_id="p")
        assert projects["web"] == healthy["web"]
        assert await broken.cached("p", "web") is None

    async def test_validation_runs_before_emitters(self, assembly, meta):
        with pytest.raises(GenerationInputError):
            await assembly.generate([], ["web"], meta)
        with pytest.raises(GenerationInputError):
            await assembly.generate([object()], ["watch"], meta)


# ============================================================================
# Export
# ============================================================================


class TestExport:
    async def test_zip_contains_every_file(self, pages, meta):
        project = (await CompilerAssembly().generate(pages, ["web"], meta))["web"]
        archive = zipfile.ZipFile(io.BytesIO(export_zip(project)))
        assert sorted(archive.namelist()) == sorted(project.files)
        assert archive.read("package.json").decode() == project.files["package.json"]

    async def test_zip_is_deterministic(self, pages, meta):
        project = (await CompilerAssembly().generate(pages, ["service"], meta))["service"]
        assert export_zip(project) == export_zip(project)
