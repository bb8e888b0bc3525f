"""
Pydantic Schemas
===============
Request and response models for the API.
"""
from .fix import FixPreviewRequest, FixPreviewResponse
from .scan import ScanRequest, ScanResponse, ScanSummary, SourceScanRequest

__all__ = [
    "FixPreviewRequest",
    "FixPreviewResponse",
    "ScanRequest",
    "ScanResponse",
    "ScanSummary",
    "SourceScanRequest",
]
