"""
Fix Schemas
===========
Request and response models for fix previews.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class FixPreviewRequest(BaseModel):
    """Inline source to analyze and transform"""

    source: str = Field(..., description="JavaScript source text")
    filename: str = Field(default="input.js")
    types: Optional[List[str]] = Field(default=None, description="Only fix these issue types")

    class Config:
        json_schema_extra = {
            "example": {
                "source": "const apiKey = 'sk_live_abcdef1234567890';",
                "filename": "config.js",
                "types": ["hardcoded-secret"],
            }
        }


class FixPreviewResponse(BaseModel):
    """Previews and the transformed text; nothing is written"""

    score: int
    issues: List[Dict[str, Any]] = Field(default_factory=list)
    previews: List[Dict[str, Any]] = Field(default_factory=list)
    applied_fixes: List[Dict[str, Any]] = Field(default_factory=list)
    transformed_code: str
    changed: bool = False
