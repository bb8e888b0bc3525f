"""
Scan Schemas
============
Request and response models for scan endpoints.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ScanRequest(BaseModel):
    """Request to scan a project directory"""

    repo_path: str = Field(..., description="Local path to the project")
    category: Optional[str] = Field(default=None, description="Only run detectors of this category")

    class Config:
        json_schema_extra = {
            "example": {
                "repo_path": "/path/to/project",
                "category": "security",
            }
        }


class SourceScanRequest(BaseModel):
    """Request to scan one inline source file"""

    source: str = Field(..., description="JavaScript source text")
    filename: str = Field(default="input.js", description="Name used in issue locations")
    category: Optional[str] = Field(default=None)

    class Config:
        json_schema_extra = {
            "example": {
                "source": "db.query('SELECT * FROM users WHERE id = ' + id);",
                "filename": "users.js",
            }
        }


class ScanSummary(BaseModel):
    """Summary of scan results"""

    files_scanned: int = Field(default=0)
    issues_found: int = Field(default=0)
    score: int = Field(default=100)
    tier: str = Field(default="green")
    by_severity: Dict[str, int] = Field(default_factory=dict)


class ScanResponse(BaseModel):
    """Response from a scan operation"""

    status: str = Field(..., description="Scan status: complete or failed")
    summary: ScanSummary
    result: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        json_schema_extra = {
            "example": {
                "status": "complete",
                "summary": {
                    "files_scanned": 12,
                    "issues_found": 3,
                    "score": 60,
                    "tier": "yellow",
                    "by_severity": {"critical": 1, "high": 2, "medium": 0, "low": 0},
                },
                "result": {},
            }
        }
