"""Code generation and download routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status

from backend.deps import get_account_id, get_assembly, get_entitlements
from backend.models.generation import (
    ExportRequest,
    GeneratedProjectResponse,
    GenerateRequest,
    GenerateResponse,
)
from backend.services.entitlements import Entitlements
from backend.utils.project_hash import hash_project
from compiler.kernel.assembly import (
    AssemblyError,
    CompilerAssembly,
    GenerationInputError,
    export_zip,
    parse_generation_request,
)
from compiler.kernel.elements import slugify_path
from compiler.kernel.types import TARGETS

logger = logging.getLogger(__name__)

router = APIRouter(tags=["generate"])


async def _require_export(entitlements: Entitlements, account_id: str | None) -> None:
    if not await entitlements.can_export_code(account_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Code export is not included in your plan.",
        )


@router.post("/api/generate", response_model=GenerateResponse)
async def generate(
    req: GenerateRequest,
    assembly: CompilerAssembly = Depends(get_assembly),
    entitlements: Entitlements = Depends(get_entitlements),
    account_id: str | None = Depends(get_account_id),
) -> GenerateResponse:
    """Generate one project per requested target."""
    await _require_export(entitlements, account_id)

    try:
        request = parse_generation_request(req.model_dump(by_alias=True, exclude_none=True))
        projects = await assembly.generate_request(request)
    except GenerationInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except AssemblyError as e:
        logger.error("Generate: emitted project rejected: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Code generation failed") from e

    return GenerateResponse(
        projects={target: GeneratedProjectResponse.model_validate(p.to_dict()) for target, p in projects.items()},
        warnings=[w.to_dict() for w in request.warnings],
    )


@router.get("/api/generate/{page_id}/{target}", response_model=GeneratedProjectResponse)
async def get_cached_project(
    page_id: str,
    target: str,
    response: Response,
    assembly: CompilerAssembly = Depends(get_assembly),
    if_none_match: str | None = Header(default=None),
) -> GeneratedProjectResponse | Response:
    """Last project generated for a page and target. Carries an ETag of its content."""
    if target not in TARGETS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown target")
    project = await assembly.cached(page_id, target)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No generated project for this page")

    etag = f'"{hash_project(project)}"'
    if if_none_match == etag:
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers={"ETag": etag})
    response.headers["ETag"] = etag
    return GeneratedProjectResponse.model_validate(project.to_dict())


@router.post("/api/export")
async def export_project(
    req: ExportRequest,
    assembly: CompilerAssembly = Depends(get_assembly),
    entitlements: Entitlements = Depends(get_entitlements),
    account_id: str | None = Depends(get_account_id),
) -> Response:
    """Generate a single target and download it as a zip archive."""
    await _require_export(entitlements, account_id)

    try:
        request = parse_generation_request(req.model_dump(by_alias=True, exclude_none=True))
        projects = await assembly.generate_request(request)
    except GenerationInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except AssemblyError as e:
        logger.error("Export: emitted project rejected: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Code generation failed") from e

    filename = f"{slugify_path(request.meta.name).replace('_', '-') or 'project'}-{req.target}.zip"
    return Response(
        content=export_zip(projects[req.target]),
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
