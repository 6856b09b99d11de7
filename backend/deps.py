"""
FastAPI dependencies.

The assembly and the deployment pipeline are created once in the app
lifespan and stored on app.state. Tests swap them through
app.dependency_overrides.
"""

from __future__ import annotations

from fastapi import Header, Request

from backend.config import settings
from backend.services.deployer import DeploymentPipeline
from backend.services.entitlements import Entitlements
from compiler.kernel.assembly import CompilerAssembly


def get_assembly(request: Request) -> CompilerAssembly:
    return request.app.state.assembly


def get_pipeline(request: Request) -> DeploymentPipeline:
    return request.app.state.pipeline


def get_entitlements() -> Entitlements:
    return Entitlements(export_enabled=settings.CODE_EXPORT_ENABLED)


def get_account_id(x_account_id: str | None = Header(default=None)) -> str | None:
    """Account the request acts for, as forwarded by the editor."""
    return x_account_id
