"""Content storage backends for document bytes."""
from tagvault.storage.base import ContentStore
from tagvault.storage.local import LocalContentStore

__all__ = ["ContentStore", "LocalContentStore"]
