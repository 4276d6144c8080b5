"""Local filesystem content store."""
import logging
import shutil
from pathlib import Path
from typing import Optional, Union

from tagvault.core.config import settings
from tagvault.exceptions import InvalidArgumentException, NotFoundException

logger = logging.getLogger(__name__)


class LocalContentStore:
    """Stores files under <base_path>/<namespace_id>/<document_id>/<filename>."""

    def __init__(self, base_path: Optional[Union[str, Path]] = None):
        """Initialize the store, creating the base directory.

        Args:
            base_path: Root directory (defaults to settings.STORAGE_PATH)
        """
        self.base_path = Path(base_path or settings.STORAGE_PATH)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _document_dir(self, namespace_id: str, document_id: str) -> Path:
        return self.base_path / namespace_id / document_id

    def _file_path(self, namespace_id: str, document_id: str, filename: str) -> Path:
        name = Path(filename).name
        if not name or name != filename:
            raise InvalidArgumentException(f"invalid file name: {filename!r}")
        return self._document_dir(namespace_id, document_id) / name

    def upload(self, namespace_id: str, document_id: str, filename: str, data: bytes) -> None:
        path = self._file_path(namespace_id, document_id, filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.debug(f"Stored {len(data)} bytes at {path}")

    def download(self, namespace_id: str, document_id: str, filename: str) -> bytes:
        path = self._file_path(namespace_id, document_id, filename)
        if not path.is_file():
            raise NotFoundException("document content", document_id)
        return path.read_bytes()

    def delete(self, namespace_id: str, document_id: str, filename: str) -> None:
        # The whole document folder goes, not just the named file
        doc_dir = self._document_dir(namespace_id, document_id)
        if not doc_dir.exists():
            raise NotFoundException("document content", document_id)
        shutil.rmtree(doc_dir)
