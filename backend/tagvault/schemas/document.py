"""
tagvault - Document Schemas

Pydantic models for namespaces, documents and document-tag associations.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from tagvault.schemas.attributes import Attributes
from tagvault.schemas.provenance import AttributesMetadata


class NamespaceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    created_at: datetime


class DocumentResponse(BaseModel):
    """Stored document record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    namespace_id: UUID
    file_name: str
    title: str
    mime_type: str
    checksum_sha256: str
    file_size: int
    created_at: datetime


class DocumentTagResponse(BaseModel):
    """A tag applied to a document, with the association's attributes."""

    name: str
    path: str
    color: Optional[str] = None
    attributes: Optional[Attributes] = None
    metadata: Optional[AttributesMetadata] = None
    updated_at: datetime


class AttributesResponse(BaseModel):
    """Attributes of a document (global) or of one of its tag associations."""

    attributes: Optional[Attributes] = None
    metadata: Optional[AttributesMetadata] = None
    schema_version: Optional[int] = None
