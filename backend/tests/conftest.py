"""
Pytest configuration and fixtures for the Plura backend tests.

The app's lifespan does not run under ASGITransport, so the assembly and
the deployment pipeline are injected through dependency overrides. Builds
go through a fake runner; no npm is needed.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

# Set test environment variables before importing config
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("PUBLIC_URL", "http://test")

import httpx
import pytest
import pytest_asyncio

from backend.deps import get_assembly, get_entitlements, get_pipeline
from backend.main import app
from backend.middleware.rate_limit import rate_limiter
from backend.services.deployer import BuildResult, BuildRunner, DeploymentPipeline
from backend.services.entitlements import Entitlements
from compiler.kernel.assembly import CompilerAssembly, MemoryBundleStorage


class FakeBuildRunner(BuildRunner):
    """
    Records build commands instead of running npm.

    results maps a step ("install" or "build") to its BuildResult. A
    successful build step writes out/index.html, plus any `extra_output`
    files, like `next build` with static export does. Set `gate` to an
    asyncio.Event to hold every step until it is released.
    """

    def __init__(self, results: dict[str, BuildResult] | None = None):
        self.results = results or {}
        self.commands: list[list[str]] = []
        self.envs: list[dict[str, str]] = []
        self.extra_output: dict[str, str] = {}
        self.gate: asyncio.Event | None = None

    async def run(
        self, command: list[str], cwd: Path, timeout: float, env: dict[str, str] | None = None
    ) -> BuildResult:
        self.commands.append(command)
        self.envs.append(env or {})
        if self.gate is not None:
            await self.gate.wait()

        step = command[-1]
        result = self.results.get(step, BuildResult(returncode=0))
        if step == "build" and result.ok:
            (cwd / "out").mkdir(exist_ok=True)
            (cwd / "out" / "index.html").write_text("<!DOCTYPE html><h1>Built site</h1>", encoding="utf-8")
            for path, content in self.extra_output.items():
                (cwd / "out" / path).parent.mkdir(parents=True, exist_ok=True)
                (cwd / "out" / path).write_text(content, encoding="utf-8")
        return result


def landing_pages() -> list[dict]:
    return [
        {
            "id": "home",
            "name": "Home",
            "pathName": "",
            "order": 0,
            "content": [
                {
                    "id": "body",
                    "type": "__body",
                    "name": "Body",
                    "styles": {"padding": "16px"},
                    "content": [
                        {
                            "id": "title",
                            "type": "heading",
                            "name": "Title",
                            "styles": {"color": "#111"},
                            "content": {"innerText": "Acme Launch", "level": 1},
                        },
                        {
                            "id": "cta",
                            "type": "button",
                            "name": "CTA",
                            "styles": {},
                            "content": {"innerText": "Sign up", "href": "/signup"},
                        },
                    ],
                }
            ],
        },
        {
            "id": "pricing",
            "name": "Pricing",
            "pathName": "/pricing",
            "order": 1,
            "content": [
                {
                    "id": "plans",
                    "type": "text",
                    "name": "Plans",
                    "styles": {},
                    "content": {"innerText": "Two plans, no surprises."},
                }
            ],
        },
    ]


@pytest.fixture
def pages() -> list[dict]:
    return landing_pages()


@pytest.fixture
def build_runner() -> FakeBuildRunner:
    return FakeBuildRunner()


@pytest_asyncio.fixture
async def pipeline(tmp_path, build_runner):
    pipeline = DeploymentPipeline(tmp_path / "deployments", build_runner=build_runner, build_timeout=5)
    yield pipeline
    await pipeline.shutdown()


@pytest.fixture
def assembly() -> CompilerAssembly:
    return CompilerAssembly(MemoryBundleStorage())


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    rate_limiter._requests.clear()
    yield
    rate_limiter._requests.clear()


@pytest_asyncio.fixture
async def client(assembly, pipeline):
    """Async HTTP client against the ASGI app with test dependencies."""
    app.dependency_overrides[get_assembly] = lambda: assembly
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    app.dependency_overrides[get_entitlements] = lambda: Entitlements(export_enabled=True)
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()
