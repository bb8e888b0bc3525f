"""
Fix Router
==========
Dry-run fixes for an inline source file.
"""
from fastapi import APIRouter, HTTPException

from prodready import api as core_api
from prodready.web_api.config import settings
from prodready.web_api.schemas.fix import FixPreviewRequest, FixPreviewResponse

router = APIRouter()


@router.post("/preview", response_model=FixPreviewResponse)
async def preview_fixes(request: FixPreviewRequest):
    """
    Analyze the posted source and return per-issue previews plus the fully
    transformed text.  Nothing is written.
    """
    if len(request.source.encode("utf-8")) > settings.MAX_SOURCE_BYTES:
        raise HTTPException(status_code=413, detail="Source too large")

    analysis, transformed, previews = core_api.fix_source(
        request.source,
        filename=request.filename,
        issue_types=request.types,
    )
    return FixPreviewResponse(
        score=analysis.score,
        issues=[i.to_dict() for i in analysis.issues],
        previews=[p.to_dict() for p in previews],
        applied_fixes=[f.to_dict() for f in transformed.applied_fixes],
        transformed_code=transformed.transformed_code,
        changed=transformed.changed,
    )
