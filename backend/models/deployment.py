"""Deployment models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from backend.models.generation import PagePayload, Target


class DeployRequest(BaseModel):
    """What the client sends to POST /api/deployments."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    pages: list[PagePayload] = Field(min_length=1)
    target: Target = "web"
    project_name: str = Field(min_length=1, max_length=100, alias="projectName")
    description: str = Field(default="", max_length=1000)


class DeploymentResponse(BaseModel):
    """Status record of one deployment."""

    model_config = {"populate_by_name": True}

    deployment_id: str = Field(alias="deploymentId")
    name: str
    target: str
    framework: str
    status: str
    url: str
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")
    error: str | None = None


class DeploymentFileResponse(BaseModel):
    model_config = {"populate_by_name": True}

    file_path: str = Field(alias="filePath")
    content: str


class DeploymentFilesResponse(BaseModel):
    model_config = {"populate_by_name": True}

    deployment_id: str = Field(alias="deploymentId")
    files: list[dict[str, Any]]
