"""
Deployment routes.

/api/deployments/...  manage deployments and inspect their files
/deployments/{id}/... serve a deployment's workspace
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from backend.config import settings
from backend.deps import get_account_id, get_assembly, get_pipeline
from backend.middleware.rate_limit import rate_limiter
from backend.models.deployment import (
    DeploymentFileResponse,
    DeploymentFilesResponse,
    DeploymentResponse,
    DeployRequest,
)
from backend.services.deployer import AccessDenied, Deployment, DeploymentNotFound, DeploymentPipeline
from compiler.kernel.assembly import AssemblyError, CompilerAssembly, GenerationInputError, parse_generation_request

logger = logging.getLogger(__name__)

router = APIRouter(tags=["deployments"])

NOT_FOUND = "Deployment not found"


def _response(deployment: Deployment) -> DeploymentResponse:
    return DeploymentResponse(
        deployment_id=deployment.id,
        name=deployment.name,
        target=deployment.target,
        framework=deployment.framework,
        status=deployment.status,
        url=f"{settings.PUBLIC_URL}/deployments/{deployment.id}",
        created_at=deployment.created_at,
        updated_at=deployment.updated_at,
        error=deployment.error,
    )


@router.post("/api/deployments", status_code=status.HTTP_201_CREATED, response_model=DeploymentResponse)
async def create_deployment(
    req: DeployRequest,
    request: Request,
    assembly: CompilerAssembly = Depends(get_assembly),
    pipeline: DeploymentPipeline = Depends(get_pipeline),
    account_id: str | None = Depends(get_account_id),
) -> DeploymentResponse:
    """Generate the project and start deploying it. Returns before the build finishes."""
    client = account_id or (request.client.host if request.client else "unknown")
    if not rate_limiter.check_rate_limit(f"deploy:{client}", settings.DEPLOY_RATE_LIMIT):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many deployments. Please try again later.",
        )

    raw = req.model_dump(by_alias=True, exclude_none=True)
    raw["targets"] = [raw.pop("target")]
    try:
        generation = parse_generation_request(raw)
        projects = await assembly.generate_request(generation)
    except GenerationInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except AssemblyError as e:
        logger.error("Deploy: emitted project rejected: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Code generation failed") from e

    deployment = await pipeline.create(projects[req.target], generation.meta.name)
    return _response(deployment)


@router.get("/api/deployments", response_model=list[DeploymentResponse])
async def list_deployments(pipeline: DeploymentPipeline = Depends(get_pipeline)) -> list[DeploymentResponse]:
    return [_response(d) for d in await asyncio.to_thread(pipeline.list_deployments)]


@router.get("/api/deployments/{deployment_id}", response_model=DeploymentResponse)
async def get_deployment(
    deployment_id: str,
    pipeline: DeploymentPipeline = Depends(get_pipeline),
) -> DeploymentResponse:
    try:
        deployment = await asyncio.to_thread(pipeline.status, deployment_id)
    except DeploymentNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND) from None
    return _response(deployment)


@router.post("/api/deployments/{deployment_id}/rebuild", response_model=DeploymentResponse)
async def rebuild_deployment(
    deployment_id: str,
    pipeline: DeploymentPipeline = Depends(get_pipeline),
) -> DeploymentResponse:
    try:
        deployment = await pipeline.rebuild(deployment_id)
    except DeploymentNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND) from None
    return _response(deployment)


@router.delete("/api/deployments/{deployment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deployment(
    deployment_id: str,
    pipeline: DeploymentPipeline = Depends(get_pipeline),
) -> Response:
    try:
        await pipeline.delete(deployment_id)
    except DeploymentNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND) from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/api/deployments/{deployment_id}/files", response_model=DeploymentFilesResponse)
async def list_deployment_files(
    deployment_id: str,
    pipeline: DeploymentPipeline = Depends(get_pipeline),
) -> DeploymentFilesResponse:
    try:
        files = await asyncio.to_thread(pipeline.list_files, deployment_id)
    except DeploymentNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND) from None
    return DeploymentFilesResponse(deployment_id=deployment_id, files=files)


@router.get("/api/deployments/{deployment_id}/file", response_model=DeploymentFileResponse)
async def read_deployment_file(
    deployment_id: str,
    path: str = Query(min_length=1),
    pipeline: DeploymentPipeline = Depends(get_pipeline),
) -> DeploymentFileResponse:
    try:
        content = await asyncio.to_thread(pipeline.read_file, deployment_id, path)
    except DeploymentNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND) from None
    except AccessDenied:
        logger.warning("Deploy: refused path %r for %s", path, deployment_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied") from None
    except (FileNotFoundError, IsADirectoryError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found") from None
    return DeploymentFileResponse(file_path=path, content=content)


# ── serving ─────────────────────────────────────────────────────────────────


@router.get("/deployments/{deployment_id}")
@router.get("/deployments/{deployment_id}/{path:path}")
async def serve_deployment(
    deployment_id: str,
    path: str = "",
    pipeline: DeploymentPipeline = Depends(get_pipeline),
) -> Response:
    """Serve a deployment's files; unknown paths fall back to its root document."""
    try:
        body, media_type = await asyncio.to_thread(pipeline.serve, deployment_id, path)
    except DeploymentNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND) from None
    except AccessDenied:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied") from None

    return Response(
        content=body,
        media_type=media_type,
        headers={"X-Content-Type-Options": "nosniff"},
    )
