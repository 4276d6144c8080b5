"""Content store interface for document bytes."""
from typing import Protocol


class ContentStore(Protocol):
    """Backend holding document bytes, addressed by namespace, document and file name."""

    def upload(self, namespace_id: str, document_id: str, filename: str, data: bytes) -> None:
        ...

    def download(self, namespace_id: str, document_id: str, filename: str) -> bytes:
        ...

    def delete(self, namespace_id: str, document_id: str, filename: str) -> None:
        ...
