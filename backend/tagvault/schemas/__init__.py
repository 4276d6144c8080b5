"""Pydantic models exchanged with callers."""
from tagvault.schemas.attributes import AttributeValue, Attributes, parse_attributes
from tagvault.schemas.document import (
    AttributesResponse,
    DocumentResponse,
    DocumentTagResponse,
    NamespaceResponse,
)
from tagvault.schemas.provenance import AttributesMetadata, ExtractionMethod, ProvenanceRecord
from tagvault.schemas.tag import SchemaResponse, TagResponse

__all__ = [
    "AttributeValue",
    "Attributes",
    "parse_attributes",
    "AttributesResponse",
    "DocumentResponse",
    "DocumentTagResponse",
    "NamespaceResponse",
    "AttributesMetadata",
    "ExtractionMethod",
    "ProvenanceRecord",
    "SchemaResponse",
    "TagResponse",
]
