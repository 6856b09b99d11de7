"""
Deployment pipeline.

Materializes a GeneratedProject into an isolated workspace directory,
builds it in the background and serves the result.

Lifecycle of a deployment:
    building → deployed | failed      (create / rebuild)
    any      → deleting → (removed)   (delete)

Status lives in a small JSON record inside the workspace so it survives
process restarts; the in-memory task map only tracks running builds.

Every path that comes from a caller goes through resolve() before the
disk is touched. A path that would land outside the workspace raises
AccessDenied.
"""

from __future__ import annotations

import asyncio
import html
import json
import logging
import mimetypes
import os
import re
import secrets
import shutil
import time
from dataclasses import asdict, dataclass, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from compiler.kernel.assembly import UnsafePathError, normalize_project_path
from compiler.kernel.elements import slugify_path
from compiler.kernel.types import GeneratedProject

logger = logging.getLogger(__name__)

STATUS_FILE = ".deployment.json"
TRASH_DIR = ".trash"
ROOT_DOCUMENTS = ("index.html", "out/index.html", "dist/index.html")
OUTPUT_DIRS = ("out", "dist")
SERVED_PREFIX = "/deployments"
SKIPPED_DIRS = frozenset({"node_modules"})
OUTPUT_TAIL = 2000

_ID_RE = re.compile(r"^[a-z0-9][a-z0-9-]{0,120}$")

# Source files are served as plain text rather than guessed script types
_TEXT_TYPES = {
    ".ts": "text/plain",
    ".tsx": "text/plain",
    ".jsx": "text/plain",
    ".py": "text/plain",
    ".md": "text/markdown",
    ".txt": "text/plain",
    ".json": "application/json",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".css": "text/css",
    ".html": "text/html",
    ".svg": "image/svg+xml",
}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DeploymentNotFound(Exception):
    """No live deployment with that id."""

    pass


class AccessDenied(Exception):
    """Requested path resolves outside the deployment workspace."""

    pass


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Deployment:
    id: str
    name: str
    target: str
    framework: str
    entry_point: str
    status: str
    created_at: str
    updated_at: str
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Deployment:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            target=data.get("target", ""),
            framework=data.get("framework", ""),
            entry_point=data.get("entry_point", ""),
            status=data.get("status", "failed"),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
            error=data.get("error"),
        )


@dataclass
class BuildResult:
    returncode: int | None
    output: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return not self.timed_out and self.returncode == 0


class BuildRunner:
    """Runs one build command inside a workspace. Swappable for tests."""

    async def run(
        self, command: list[str], cwd: Path, timeout: float, env: dict[str, str] | None = None
    ) -> BuildResult:
        raise NotImplementedError


class SubprocessBuildRunner(BuildRunner):
    """Runs commands as child processes, killed on timeout or cancellation."""

    async def run(
        self, command: list[str], cwd: Path, timeout: float, env: dict[str, str] | None = None
    ) -> BuildResult:
        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(cwd),
                env={**os.environ, **(env or {})},
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except FileNotFoundError as e:
            return BuildResult(returncode=None, output=str(e))

        try:
            stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except TimeoutError:
            proc.kill()
            await proc.wait()
            return BuildResult(returncode=None, timed_out=True)
        except asyncio.CancelledError:
            proc.kill()
            raise

        return BuildResult(returncode=proc.returncode, output=stdout.decode("utf-8", errors="replace"))


def _now() -> str:
    return datetime.now(UTC).isoformat()


def content_type(path: str) -> str:
    suffix = Path(path).suffix.lower()
    media_type = _TEXT_TYPES.get(suffix) or mimetypes.guess_type(path)[0] or "application/octet-stream"
    if media_type.startswith("text/") or media_type in ("application/json", "image/svg+xml"):
        return f"{media_type}; charset=utf-8"
    return media_type


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class DeploymentPipeline:
    def __init__(
        self,
        root: Path | str,
        build_runner: BuildRunner | None = None,
        build_timeout: float = 600.0,
        build_enabled: bool = True,
        npm_binary: str = "npm",
    ):
        self.root = Path(root)
        self.build_runner = build_runner or SubprocessBuildRunner()
        self.build_timeout = build_timeout
        self.build_enabled = build_enabled
        self.npm_binary = npm_binary
        self._tasks: dict[str, asyncio.Task] = {}

    # -- create / build --

    async def create(self, project: GeneratedProject, name: str) -> Deployment:
        """
        Write the project into a fresh workspace and start its build.
        Returns straight away with status "building".
        """
        self.root.mkdir(parents=True, exist_ok=True)
        deployment_id, workspace = self._allocate(name)

        try:
            await asyncio.to_thread(self._write_files, workspace, project)
        except AccessDenied:
            await asyncio.to_thread(shutil.rmtree, workspace, True)
            raise

        now = _now()
        deployment = Deployment(
            id=deployment_id,
            name=name,
            target=project.target,
            framework=project.metadata.framework,
            entry_point=project.metadata.entry_point,
            status="building",
            created_at=now,
            updated_at=now,
        )
        self._write_status(workspace, deployment)
        logger.info("Deployer: created %s (%s, %d files)", deployment_id, project.target, len(project.files))

        self._start_build(deployment_id)
        return deployment

    async def rebuild(self, deployment_id: str) -> Deployment:
        """Re-run the build of an existing deployment. Never automatic."""
        deployment = self._active(deployment_id)
        running = self._tasks.get(deployment_id)
        if running and not running.done():
            return deployment

        deployment = self._update(deployment_id, status="building", error=None)
        self._start_build(deployment_id)
        return deployment

    async def wait(self, deployment_id: str) -> Deployment:
        """Wait for a running build to settle and return the final record."""
        task = self._tasks.get(deployment_id)
        if task is not None:
            await asyncio.shield(task)
        return self.status(deployment_id)

    def _allocate(self, name: str) -> tuple[str, Path]:
        slug = slugify_path(name).replace("_", "-")[:40].strip("-") or "site"
        for _ in range(5):
            deployment_id = f"{slug}-{int(time.time() * 1000)}-{secrets.token_hex(3)}"
            workspace = self.root / deployment_id
            try:
                workspace.mkdir(exist_ok=False)
            except FileExistsError:
                continue
            return deployment_id, workspace
        raise RuntimeError("Could not allocate a deployment workspace")

    def _write_files(self, workspace: Path, project: GeneratedProject) -> None:
        root = workspace.resolve()
        for path, content in project.files.items():
            target = self._contained(root, path)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")

    def _start_build(self, deployment_id: str) -> None:
        task = asyncio.create_task(self._run_build(deployment_id))
        self._tasks[deployment_id] = task
        task.add_done_callback(lambda t: self._forget(deployment_id, t))

    def _forget(self, deployment_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(deployment_id) is task:
            del self._tasks[deployment_id]

    async def _run_build(self, deployment_id: str) -> None:
        workspace = self.workspace(deployment_id)
        deployment = self.status(deployment_id)
        try:
            error = await self._build(workspace, deployment.target, self.base_path(deployment_id))
        except Exception as e:
            logger.exception("Deployer: build of %s crashed", deployment_id)
            error = f"Build crashed: {e}"

        if not (workspace / STATUS_FILE).exists() or self.status(deployment_id).status == "deleting":
            return
        if error:
            logger.warning("Deployer: build of %s failed: %s", deployment_id, error.splitlines()[0])
            self._update(deployment_id, status="failed", error=error)
        else:
            logger.info("Deployer: %s deployed", deployment_id)
            self._update(deployment_id, status="deployed", error=None)

    async def _build(self, workspace: Path, target: str, base_path: str) -> str | None:
        """Run the build steps. Returns an error message, or None on success."""
        manifest = workspace / "package.json"
        if target != "web" or not self.build_enabled or not manifest.is_file():
            return None

        try:
            scripts = json.loads(manifest.read_text(encoding="utf-8")).get("scripts") or {}
        except json.JSONDecodeError as e:
            return f"package.json is not valid JSON: {e}"

        steps = [[self.npm_binary, "install"]]
        if "build" in scripts:
            steps.append([self.npm_binary, "run", "build"])

        env = {"NEXT_BASE_PATH": base_path}
        for command in steps:
            label = " ".join(command[1:])
            result = await self.build_runner.run(command, workspace, self.build_timeout, env=env)
            if result.timed_out:
                return f"`npm {label}` timed out after {self.build_timeout:g}s"
            if not result.ok:
                tail = result.output[-OUTPUT_TAIL:].strip()
                code = "could not start" if result.returncode is None else f"exited with {result.returncode}"
                return f"`npm {label}` {code}" + (f"\n{tail}" if tail else "")
        return None

    # -- status --

    def base_path(self, deployment_id: str) -> str:
        """URL path the deployment is served under."""
        return f"{SERVED_PREFIX}/{deployment_id}"

    def workspace(self, deployment_id: str) -> Path:
        if not _ID_RE.match(deployment_id or ""):
            raise DeploymentNotFound(deployment_id)
        return self.root / deployment_id

    def status(self, deployment_id: str) -> Deployment:
        record = self.workspace(deployment_id) / STATUS_FILE
        try:
            data = json.loads(record.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise DeploymentNotFound(deployment_id) from None
        return Deployment.from_dict(data)

    def list_deployments(self) -> list[Deployment]:
        if not self.root.is_dir():
            return []
        deployments = []
        for entry in sorted(self.root.iterdir()):
            if entry.name.startswith(".") or not (entry / STATUS_FILE).is_file():
                continue
            deployment = self.status(entry.name)
            if deployment.status != "deleting":
                deployments.append(deployment)
        return deployments

    def _active(self, deployment_id: str) -> Deployment:
        deployment = self.status(deployment_id)
        if deployment.status == "deleting":
            raise DeploymentNotFound(deployment_id)
        return deployment

    def _update(self, deployment_id: str, **changes: Any) -> Deployment:
        deployment = replace(self.status(deployment_id), updated_at=_now(), **changes)
        self._write_status(self.workspace(deployment_id), deployment)
        return deployment

    def _write_status(self, workspace: Path, deployment: Deployment) -> None:
        record = workspace / STATUS_FILE
        tmp = workspace / f"{STATUS_FILE}.tmp"
        tmp.write_text(json.dumps(deployment.to_dict(), indent=2), encoding="utf-8")
        os.replace(tmp, record)

    # -- files --

    def resolve(self, deployment_id: str, path: str) -> Path:
        """Map a caller-supplied path onto the workspace, or raise AccessDenied."""
        self._active(deployment_id)
        return self._contained(self.workspace(deployment_id).resolve(), path)

    @staticmethod
    def _contained(root: Path, path: str) -> Path:
        try:
            relative = normalize_project_path(path)
        except UnsafePathError as e:
            raise AccessDenied(str(e)) from e
        if relative == STATUS_FILE or relative.startswith(f"{STATUS_FILE}.") or relative.startswith(f"{TRASH_DIR}/"):
            raise AccessDenied(f"Reserved path: {path!r}")

        target = (root / relative).resolve()
        if not target.is_relative_to(root):
            raise AccessDenied(f"Path escapes the workspace: {path!r}")
        return target

    def read_file(self, deployment_id: str, path: str) -> str:
        target = self.resolve(deployment_id, path)
        if not target.is_file():
            raise FileNotFoundError(path)
        return target.read_text(encoding="utf-8", errors="replace")

    def list_files(self, deployment_id: str) -> list[dict[str, Any]]:
        """Nested listing of the workspace without dotfiles or node_modules."""
        self._active(deployment_id)
        root = self.workspace(deployment_id).resolve()
        return self._tree(root, root)

    def _tree(self, root: Path, directory: Path) -> list[dict[str, Any]]:
        entries = [e for e in directory.iterdir() if not e.name.startswith(".") and e.name not in SKIPPED_DIRS]
        entries.sort(key=lambda e: (not e.is_dir(), e.name))

        tree = []
        for entry in entries:
            path = entry.relative_to(root).as_posix()
            if entry.is_symlink():
                continue
            if entry.is_dir():
                tree.append({"name": entry.name, "path": path, "type": "directory", "children": self._tree(root, entry)})
            else:
                tree.append({"name": entry.name, "path": path, "type": "file", "size": entry.stat().st_size})
        return tree

    # -- serving --

    def serve(self, deployment_id: str, path: str = "") -> tuple[bytes, str]:
        """
        Body and content type for a request under /deployments/<id>/.

        Once a build has produced an output directory, paths resolve inside
        it, trying <path>, <path>.html and <path>/index.html. Before that they
        resolve against the workspace. Unknown paths fall back to the root
        document so client-side routing keeps working.
        """
        if not path.strip("/"):
            return self.root_document(deployment_id)

        self._active(deployment_id)
        workspace = self.workspace(deployment_id).resolve()
        root = self._output_dir(workspace) or workspace
        target = self._contained(root, path)

        for candidate in (target, target.with_name(f"{target.name}.html"), target / "index.html"):
            if candidate.is_file() and candidate.resolve().is_relative_to(root):
                return candidate.read_bytes(), content_type(candidate.name)
        return self.root_document(deployment_id)

    @staticmethod
    def _output_dir(workspace: Path) -> Path | None:
        for name in OUTPUT_DIRS:
            output = workspace / name
            if output.is_dir() and not output.is_symlink():
                return output
        return None

    def root_document(self, deployment_id: str) -> tuple[bytes, str]:
        deployment = self._active(deployment_id)
        workspace = self.workspace(deployment_id)
        for candidate in ROOT_DOCUMENTS:
            document = workspace / candidate
            if document.is_file():
                return document.read_bytes(), content_type(candidate)
        return placeholder_page(deployment).encode("utf-8"), content_type("index.html")

    # -- delete --

    async def delete(self, deployment_id: str) -> None:
        """
        Mark the deployment as deleting, move the workspace out of the
        served tree in one rename, then remove it.
        """
        self._update(deployment_id, status="deleting")

        task = self._tasks.pop(deployment_id, None)
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                logger.info("Deployer: cancelled build of %s", deployment_id)

        trash = self.root / TRASH_DIR
        trash.mkdir(exist_ok=True)
        doomed = trash / f"{deployment_id}-{secrets.token_hex(4)}"
        os.replace(self.workspace(deployment_id), doomed)
        await asyncio.to_thread(shutil.rmtree, doomed)
        logger.info("Deployer: deleted %s", deployment_id)

    async def purge_trash(self) -> int:
        """Remove workspaces left in the trash by an interrupted delete."""
        trash = self.root / TRASH_DIR
        if not trash.is_dir():
            return 0
        leftovers = [entry for entry in trash.iterdir() if entry.is_dir()]
        for entry in leftovers:
            await asyncio.to_thread(shutil.rmtree, entry, True)
        return len(leftovers)

    async def shutdown(self) -> None:
        """Cancel running builds. Their records keep status "building" until rebuilt."""
        tasks = [t for t in self._tasks.values() if not t.done()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()


def placeholder_page(deployment: Deployment) -> str:
    if deployment.status == "building":
        message = "This deployment is still building. Refresh in a moment."
    elif deployment.status == "failed":
        message = "The last build failed. The generated source is still available."
    else:
        message = "This deployment has no static page to show."

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{html.escape(deployment.name)}</title>
<style>
body {{ font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif; margin: 0; min-height: 100vh; display: flex; align-items: center; justify-content: center; background: #f7f7f8; color: #1f2933; }}
main {{ max-width: 32rem; padding: 2rem; text-align: center; }}
code {{ background: #eceef1; padding: 0.1rem 0.3rem; border-radius: 4px; }}
</style>
</head>
<body>
<main>
<h1>{html.escape(deployment.name)}</h1>
<p>{html.escape(message)}</p>
<p>Target <code>{html.escape(deployment.target)}</code> &middot; {html.escape(deployment.framework)} &middot; status <code>{html.escape(deployment.status)}</code></p>
</main>
</body>
</html>
"""
