"""Business logic services."""
from tagvault.services.document_service import DocumentService
from tagvault.services.document_tag_service import DocumentTagService
from tagvault.services.namespace_service import NamespaceService
from tagvault.services.schema_service import SchemaService
from tagvault.services.tag_service import TagService, generate_color_from_name

__all__ = [
    "DocumentService",
    "DocumentTagService",
    "NamespaceService",
    "SchemaService",
    "TagService",
    "generate_color_from_name",
]
