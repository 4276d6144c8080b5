"""
tagvault - Tag Schemas

Pydantic models returned by the tag hierarchy operations.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class TagResponse(BaseModel):
    """Tag with its latest attribute schema."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    path: str = Field(..., description="Materialized path, the tag's public identity")
    description: Optional[str] = None
    color: Optional[str] = Field(default=None, description="Hex color code")
    parent_path: Optional[str] = None
    json_schema: Optional[Dict[str, Any]] = None
    schema_version: Optional[int] = None
    created_at: datetime
    modified_at: datetime


class SchemaResponse(BaseModel):
    """One stored attribute schema version."""

    model_config = ConfigDict(from_attributes=True)

    tag_path: Optional[str] = Field(default=None, description="None for the namespace-global schema")
    version: int
    json_schema: Dict[str, Any]
    created_at: datetime
