"""Database models package."""
from tagvault.db.models.attribute_schema import AttributeSchema
from tagvault.db.models.document import Document
from tagvault.db.models.document_tag import DocumentTag
from tagvault.db.models.namespace import Namespace
from tagvault.db.models.tag import Tag

__all__ = [
    "Namespace",
    "Document",
    "Tag",
    "DocumentTag",
    "AttributeSchema",
]
