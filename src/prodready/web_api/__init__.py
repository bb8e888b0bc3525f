"""
ProdReady Web API
=================
FastAPI-based REST API for scanning and previewing fixes.

Quick Start:
    uvicorn prodready.web_api.main:app --reload
"""
from .main import app

__all__ = ["app"]
