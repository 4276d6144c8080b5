"""Event subjects."""

DOCUMENT_UPLOADED = "documents.uploaded"
SCHEMA_CHANGED = "schema.changed"
TAG_EXTRACTED = "tags.extracted"
