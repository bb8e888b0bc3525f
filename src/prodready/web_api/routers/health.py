"""
Health Check Router
==================
Endpoints for health checks and readiness probes.
"""
from fastapi import APIRouter

from prodready import __version__

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns OK if the service is running.
    """
    return {"status": "ok", "version": __version__}


@router.get("/ready")
async def readiness_check():
    """
    Readiness check endpoint.
    Ready once the JavaScript parser and the bundled schemas load.
    """
    from prodready.contracts.load import load_schema
    from prodready.source.parser import try_parse

    load_schema("analysis_result.schema.json")
    ready = try_parse("const ok = true;") is not None
    return {"status": "ready" if ready else "degraded"}
