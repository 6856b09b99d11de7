"""Preview route: renders an element tree to a standalone HTML document."""

from __future__ import annotations

import json

from fastapi import APIRouter, HTTPException, Response, status

from backend.models.generation import PreviewRequest
from compiler.kernel.elements import GenerationInputError, parse_elements
from compiler.kernel.renderer import preview_headers, render_preview
from compiler.kernel.types import PageMeta, PreviewOptions

router = APIRouter(tags=["preview"])


@router.post("/api/preview")
async def preview(req: PreviewRequest) -> Response:
    raw = req.elements
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"elements is not valid JSON: {e}") from e

    options = PreviewOptions(live=req.mode.live, embedded=req.mode.embedded)
    meta = PageMeta(
        title=req.page_meta.title,
        description=req.page_meta.description,
        favicon=req.page_meta.favicon,
    )
    try:
        document = render_preview(parse_elements(raw).elements, meta, options)
    except GenerationInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return Response(
        content=document,
        media_type="text/html; charset=utf-8",
        headers=preview_headers(options),
    )
