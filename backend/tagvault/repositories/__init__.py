"""Repository exports."""
from tagvault.repositories.document_repository import DocumentRepository
from tagvault.repositories.document_tag_repository import DocumentTagRepository
from tagvault.repositories.namespace_repository import NamespaceRepository
from tagvault.repositories.schema_repository import SchemaRepository
from tagvault.repositories.tag_repository import TagRepository

__all__ = [
    "NamespaceRepository",
    "DocumentRepository",
    "TagRepository",
    "SchemaRepository",
    "DocumentTagRepository",
]
