"""
Pydantic models for Plura.

Request and response shapes for the HTTP surface. No imports from routes
or services.
"""

from backend.models.deployment import (
    DeploymentFileResponse,
    DeploymentFilesResponse,
    DeploymentResponse,
    DeployRequest,
)
from backend.models.generation import (
    ExportRequest,
    GeneratedProjectResponse,
    GenerateRequest,
    GenerateResponse,
    PagePayload,
    PreviewRequest,
)

__all__ = [
    "DeployRequest",
    "DeploymentFileResponse",
    "DeploymentFilesResponse",
    "DeploymentResponse",
    "ExportRequest",
    "GenerateRequest",
    "GenerateResponse",
    "GeneratedProjectResponse",
    "PagePayload",
    "PreviewRequest",
]
