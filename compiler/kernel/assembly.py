"""
Plura Compiler — Assembly Layer

Sits between the pure emitters and the outside world (bundle cache, the
deployment pipeline, code download). Turns a generation request into
finished GeneratedProjects.

Operations: parse request, assemble, generate (with write-through cache),
cached lookup, invalidate, export.

Every project leaving this layer satisfies the file-map contract:
- paths are relative, forward-slash separated and free of ".." segments
- no two files share a path after normalization
- the target's manifest file is present
"""

from __future__ import annotations

import asyncio
import io
import logging
import re
import zipfile
from dataclasses import dataclass, field
from typing import Any

from compiler.kernel.elements import GenerationInputError, parse_pages
from compiler.kernel.emitters import EMITTERS
from compiler.kernel.types import (
    TARGETS,
    GeneratedProject,
    Page,
    ProjectMeta,
    Warning,
)

logger = logging.getLogger(__name__)

_DRIVE_RE = re.compile(r"^[A-Za-z]:")

# Fixed timestamp so identical projects zip to identical bytes
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class UnsafePathError(Exception):
    """File path is absolute, empty, or escapes its root."""

    pass


class AssemblyError(Exception):
    """An emitted project breaks the file-map contract."""

    pass


__all__ = [
    "AssemblyError",
    "BundleStorage",
    "CompilerAssembly",
    "GenerationInputError",
    "GenerationRequest",
    "MemoryBundleStorage",
    "UnsafePathError",
    "assemble",
    "export_zip",
    "finalize_project",
    "normalize_project_path",
    "parse_generation_request",
]


# ---------------------------------------------------------------------------
# Storage protocol
# ---------------------------------------------------------------------------


class BundleStorage:
    """
    Cache of generated projects keyed by (page_id, target).
    Implement with Postgres for production, or in-memory for tests.

    A put supersedes the previous bundle for that key wholesale.
    """

    async def get(self, page_id: str, target: str) -> GeneratedProject | None:
        raise NotImplementedError

    async def put(self, page_id: str, target: str, project: GeneratedProject) -> None:
        raise NotImplementedError

    async def delete(self, page_id: str) -> None:
        """Drop every target's bundle for a page."""
        raise NotImplementedError


class MemoryBundleStorage(BundleStorage):
    """In-memory storage for testing."""

    def __init__(self) -> None:
        self.bundles: dict[tuple[str, str], GeneratedProject] = {}

    async def get(self, page_id: str, target: str) -> GeneratedProject | None:
        return self.bundles.get((page_id, target))

    async def put(self, page_id: str, target: str, project: GeneratedProject) -> None:
        self.bundles[(page_id, target)] = project

    async def delete(self, page_id: str) -> None:
        for key in [k for k in self.bundles if k[0] == page_id]:
            del self.bundles[key]


# ---------------------------------------------------------------------------
# Request parsing
# ---------------------------------------------------------------------------


@dataclass
class GenerationRequest:
    pages: list[Page]
    targets: list[str]
    meta: ProjectMeta
    page_id: str | None = None
    warnings: list[Warning] = field(default_factory=list)


def parse_generation_request(raw: dict[str, Any]) -> GenerationRequest:
    """
    Validate and read a raw generation request.

    Keys: pages, targets (or a single target), projectName, description,
    pageId, generatedAt. Raises GenerationInputError before any emitter runs.
    """
    if not isinstance(raw, dict):
        raise GenerationInputError("Generation request must be an object")

    targets = raw.get("targets")
    if targets is None and raw.get("target"):
        targets = [raw["target"]]
    targets = validate_targets(targets)

    pages, warnings = parse_pages(raw.get("pages"))

    name = str(raw.get("projectName") or "").strip()
    if not name:
        raise GenerationInputError("projectName is required")

    meta = ProjectMeta(
        name=name,
        description=str(raw.get("description") or ""),
        generated_at=str(raw["generatedAt"]) if raw.get("generatedAt") else None,
    )
    page_id = raw.get("pageId")
    return GenerationRequest(
        pages=pages,
        targets=targets,
        meta=meta,
        page_id=str(page_id) if page_id else None,
        warnings=warnings,
    )


def validate_targets(targets: Any) -> list[str]:
    """Known targets in request order, duplicates removed."""
    if not isinstance(targets, list) or not targets:
        raise GenerationInputError("At least one target is required")
    result: list[str] = []
    for target in targets:
        if target not in TARGETS:
            raise GenerationInputError(f"Unknown target: {target!r} (expected one of {', '.join(TARGETS)})")
        if target not in result:
            result.append(target)
    return result


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


def normalize_project_path(path: str) -> str:
    """
    Normalize a project file path to its relative, forward-slash form.

    "./src//app\\page.tsx" → "src/app/page.tsx"

    Raises UnsafePathError for empty paths, absolute paths, drive letters,
    NUL bytes and any ".." segment. A path that passes can be joined onto a
    workspace root without leaving it.
    """
    if not isinstance(path, str) or not path.strip():
        raise UnsafePathError("File path is empty")
    if "\x00" in path:
        raise UnsafePathError(f"File path contains a NUL byte: {path!r}")

    text = path.replace("\\", "/")
    if text.startswith("/") or _DRIVE_RE.match(text):
        raise UnsafePathError(f"File path is absolute: {path!r}")

    segments: list[str] = []
    for segment in text.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            raise UnsafePathError(f"File path leaves the project root: {path!r}")
        segments.append(segment)

    if not segments:
        raise UnsafePathError(f"File path names no file: {path!r}")
    return "/".join(segments)


def finalize_project(project: GeneratedProject) -> GeneratedProject:
    """Normalize every path and check the manifest; raise AssemblyError on violations."""
    files: dict[str, str] = {}
    for path, content in project.files.items():
        try:
            normalized = normalize_project_path(path)
        except UnsafePathError as e:
            raise AssemblyError(f"{project.target}: {e}") from e
        if normalized in files:
            raise AssemblyError(f"{project.target}: two files normalize to {normalized!r}")
        files[normalized] = content

    manifest = project.metadata.manifest
    if manifest not in files:
        raise AssemblyError(f"{project.target}: manifest {manifest!r} missing from emitted files")

    return GeneratedProject(target=project.target, files=files, metadata=project.metadata)


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def assemble(pages: list[Page], targets: list[str], meta: ProjectMeta) -> dict[str, GeneratedProject]:
    """Run each requested emitter in turn. Synchronous and pure."""
    targets = validate_targets(targets)
    if not pages:
        raise GenerationInputError("At least one page is required")
    return {target: _emit(target, pages, meta) for target in targets}


def _emit(target: str, pages: list[Page], meta: ProjectMeta) -> GeneratedProject:
    project = finalize_project(EMITTERS[target].emit(pages, meta))
    logger.info("Assembly: emitted %s project with %d files", target, len(project.files))
    return project


def export_zip(project: GeneratedProject) -> bytes:
    """Zip a project's files. Same project, same bytes."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for path in sorted(project.files):
            info = zipfile.ZipInfo(path, date_time=_ZIP_EPOCH)
            info.external_attr = 0o644 << 16
            info.compress_type = zipfile.ZIP_DEFLATED
            archive.writestr(info, project.files[path])
    return buffer.getvalue()


class CompilerAssembly:
    """
    Coordinates emitters and the bundle cache.
    Generation never depends on the cache: a failing cache is logged and
    the freshly emitted projects are still returned.
    """

    def __init__(self, storage: BundleStorage | None = None):
        self.storage = storage or MemoryBundleStorage()
        self._locks: dict[str, asyncio.Lock] = {}

    def _get_lock(self, page_id: str) -> asyncio.Lock:
        if page_id not in self._locks:
            self._locks[page_id] = asyncio.Lock()
        return self._locks[page_id]

    # -- generate --

    async def generate(
        self,
        pages: list[Page],
        targets: list[str],
        meta: ProjectMeta,
        page_id: str | None = None,
    ) -> dict[str, GeneratedProject]:
        """
        Emit every requested target concurrently, then write through to
        the cache when a page id is given.
        """
        targets = validate_targets(targets)
        if not pages:
            raise GenerationInputError("At least one page is required")

        results = await asyncio.gather(
            *(asyncio.to_thread(_emit, target, pages, meta) for target in targets)
        )
        projects = dict(zip(targets, results))

        if page_id:
            async with self._get_lock(page_id):
                for target, project in projects.items():
                    try:
                        await self.storage.put(page_id, target, project)
                    except Exception as e:
                        logger.warning("Assembly: bundle cache write failed for %s/%s: %s", page_id, target, e)

        return projects

    async def generate_request(self, request: GenerationRequest) -> dict[str, GeneratedProject]:
        return await self.generate(request.pages, request.targets, request.meta, request.page_id)

    # -- cache --

    async def cached(self, page_id: str, target: str) -> GeneratedProject | None:
        try:
            return await self.storage.get(page_id, target)
        except Exception as e:
            logger.warning("Assembly: bundle cache read failed for %s/%s: %s", page_id, target, e)
            return None

    async def invalidate(self, page_id: str) -> None:
        async with self._get_lock(page_id):
            await self.storage.delete(page_id)
