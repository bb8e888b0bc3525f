"""
Scan Router
===========
Endpoints for scanning a project directory or an inline source file.
"""
import logging
from pathlib import Path

from fastapi import APIRouter, HTTPException

from prodready import api as core_api
from prodready.web_api.config import settings
from prodready.web_api.schemas.scan import (
    ScanRequest,
    ScanResponse,
    ScanSummary,
    SourceScanRequest,
)

router = APIRouter()
_logger = logging.getLogger(__name__)


def _summary(result) -> ScanSummary:
    return ScanSummary(
        files_scanned=len(result.files),
        issues_found=result.total_issues,
        score=result.score,
        tier=result.to_dict()["tier"],
        by_severity=result.by_severity,
    )


@router.post("/", response_model=ScanResponse)
async def run_scan(request: ScanRequest):
    """
    Scan a project directory.

    - **repo_path**: Local path to scan
    - **category**: Optional detector category filter
    """
    target = Path(request.repo_path)
    if not target.is_dir():
        raise HTTPException(status_code=404, detail=f"Path not found: {request.repo_path}")

    try:
        result, result_dict = core_api.scan_project(root=target, category=request.category)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        _logger.exception("scan of %s failed", target)
        raise HTTPException(status_code=500, detail=str(e))

    return ScanResponse(status="complete", summary=_summary(result), result=result_dict)


@router.post("/source", response_model=ScanResponse)
async def scan_source(request: SourceScanRequest):
    """
    Scan one file posted inline; nothing is read from or written to disk.
    """
    if len(request.source.encode("utf-8")) > settings.MAX_SOURCE_BYTES:
        raise HTTPException(status_code=413, detail="Source too large")

    try:
        result = core_api.scan_source(
            request.source, filename=request.filename, category=request.category
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ScanResponse(status="complete", summary=_summary(result), result=result.to_dict())
