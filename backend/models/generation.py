"""Generation, export and preview models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

Target = Literal["web", "mobile", "service"]


class PagePayload(BaseModel):
    """One page of the editor's document. Extra editor fields are ignored."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    id: str | None = None
    name: str = Field(min_length=1, max_length=200)
    path_name: str = Field(default="", max_length=200, alias="pathName")
    order: int = 0
    content: list[Any] | str = Field(default_factory=list)  # element tree, or its JSON string


class GenerateRequest(BaseModel):
    """What the client sends to POST /api/generate."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    pages: list[PagePayload] = Field(min_length=1)
    targets: list[Target] = Field(min_length=1)
    project_name: str = Field(min_length=1, max_length=100, alias="projectName")
    description: str = Field(default="", max_length=1000)
    page_id: str | None = Field(default=None, max_length=200, alias="pageId")
    generated_at: str | None = Field(default=None, alias="generatedAt")


class ExportRequest(BaseModel):
    """What the client sends to POST /api/export."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    pages: list[PagePayload] = Field(min_length=1)
    target: Target
    project_name: str = Field(min_length=1, max_length=100, alias="projectName")
    description: str = Field(default="", max_length=1000)


class ProjectMetadataResponse(BaseModel):
    model_config = {"populate_by_name": True}

    framework: str
    entry_point: str = Field(alias="entryPoint")
    manifest: str


class GeneratedProjectResponse(BaseModel):
    """A generated project: relative path → file content, plus metadata."""

    target: Target
    files: dict[str, str]
    metadata: ProjectMetadataResponse


class WarningResponse(BaseModel):
    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class GenerateResponse(BaseModel):
    """What POST /api/generate returns."""

    projects: dict[str, GeneratedProjectResponse]
    warnings: list[WarningResponse] = Field(default_factory=list)


class PageMetaPayload(BaseModel):
    model_config = {"extra": "forbid"}

    title: str = Field(default="Preview", max_length=200)
    description: str = Field(default="", max_length=1000)
    favicon: str | None = None


class PreviewMode(BaseModel):
    """Independent preview flags."""

    model_config = {"extra": "forbid"}

    live: bool = False
    embedded: bool = False


class PreviewRequest(BaseModel):
    """What the client sends to POST /api/preview."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    elements: list[Any] | str
    page_meta: PageMetaPayload = Field(default_factory=PageMetaPayload, alias="pageMeta")
    mode: PreviewMode = Field(default_factory=PreviewMode)
