"""Document records and their stored content."""
import asyncio
import hashlib
import logging
import uuid as uuid_pkg
from pathlib import PurePath
from typing import List, Optional, Tuple, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tagvault.db.models.document import Document
from tagvault.db.models.namespace import Namespace
from tagvault.events import subjects
from tagvault.events.publisher import EventPublisher, publish_safely
from tagvault.exceptions import (
    AlreadyExistsException,
    InvalidArgumentException,
    NotFoundException,
    TagVaultException,
)
from tagvault.repositories.document_repository import DocumentRepository
from tagvault.repositories.document_tag_repository import DocumentTagRepository
from tagvault.repositories.namespace_repository import NamespaceRepository
from tagvault.schemas.document import DocumentResponse
from tagvault.services.document_tag_service import parse_document_id
from tagvault.services.unit_of_work import unit_of_work
from tagvault.storage.base import ContentStore
from tagvault.storage.local import LocalContentStore

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


def compute_checksum(data: bytes) -> str:
    """Hex SHA-256 of a document's bytes."""
    return hashlib.sha256(data).hexdigest()


class DocumentService:
    """Uploads, downloads and deletes documents.

    Bytes go to the content store, the record goes to the database. Content
    is written first and removed again when the record can't be stored.
    Store calls are blocking and run in a worker thread.
    """

    def __init__(
        self,
        session: AsyncSession,
        store: Optional[ContentStore] = None,
        publisher: Optional[EventPublisher] = None,
    ):
        """Initialize document service.

        Args:
            session: Async database session
            store: Content store (defaults to a LocalContentStore at settings.STORAGE_PATH)
            publisher: Event publisher for documents.uploaded events
        """
        self.session = session
        self.store = store if store is not None else LocalContentStore()
        self.publisher = publisher
        self.namespaces = NamespaceRepository(session)
        self.documents = DocumentRepository(session)
        self.document_tags = DocumentTagRepository(session)

    async def _get_namespace(self, name: str) -> Namespace:
        namespace = await self.namespaces.get_by_name(name)
        if namespace is None:
            raise NotFoundException("namespace", name)
        return namespace

    async def _get_document(self, namespace: Namespace, document_id: UUID) -> Document:
        document = await self.documents.get_in_namespace(document_id, namespace.id)
        if document is None:
            raise NotFoundException("document", document_id)
        return document

    async def _remove_content(self, namespace_id: UUID, document_id: UUID, file_name: str) -> None:
        try:
            await asyncio.to_thread(self.store.delete, str(namespace_id), str(document_id), file_name)
        except (OSError, TagVaultException) as e:
            logger.warning(f"Failed to remove content of document {document_id}: {e}")

    async def upload_document(
        self,
        namespace: str,
        filename: str,
        mime_type: Optional[str],
        data: bytes,
        title: Optional[str] = None,
    ) -> DocumentResponse:
        """Store a new document.

        Args:
            namespace: Namespace name
            filename: Original file name, without directories
            mime_type: Content type (defaults to application/octet-stream)
            data: Document bytes
            title: Display title (defaults to the file name)

        Returns:
            The stored document record

        Raises:
            InvalidArgumentException: Empty or path-like file name
            NotFoundException: Unknown namespace
            AlreadyExistsException: Identical content already stored in the namespace
        """
        if not filename or PurePath(filename).name != filename:
            raise InvalidArgumentException(f"invalid file name: {filename!r}")

        checksum = compute_checksum(data)
        document_id = uuid_pkg.uuid4()
        stored_in: Optional[UUID] = None

        try:
            async with unit_of_work(self.session):
                ns = await self._get_namespace(namespace)
                if await self.documents.get_by_checksum(ns.id, checksum) is not None:
                    raise AlreadyExistsException("document", checksum)

                await asyncio.to_thread(self.store.upload, str(ns.id), str(document_id), filename, data)
                stored_in = ns.id

                document = Document(
                    id=document_id,
                    namespace_id=ns.id,
                    file_name=filename,
                    title=title or filename,
                    mime_type=mime_type or DEFAULT_MIME_TYPE,
                    checksum_sha256=checksum,
                    file_size=len(data),
                )
                try:
                    await self.documents.create(document)
                except IntegrityError as e:
                    raise AlreadyExistsException("document", checksum) from e
        except Exception:
            if stored_in is not None:
                await self._remove_content(stored_in, document_id, filename)
            raise

        logger.info(f"Uploaded document {document.id} ({len(data)} bytes) to namespace {ns.name}")

        await publish_safely(
            self.publisher,
            subjects.DOCUMENT_UPLOADED,
            {
                "namespace": ns.name,
                "document_id": str(document.id),
                "file_name": document.file_name,
                "mime_type": document.mime_type,
                "checksum_sha256": document.checksum_sha256,
                "file_size": document.file_size,
            },
        )

        return DocumentResponse.model_validate(document)

    async def get_document(self, namespace: str, document_id: Union[str, UUID]) -> DocumentResponse:
        doc_id = parse_document_id(document_id)
        async with unit_of_work(self.session):
            ns = await self._get_namespace(namespace)
            document = await self._get_document(ns, doc_id)
        return DocumentResponse.model_validate(document)

    async def list_documents(self, namespace: str, limit: int = 100, offset: int = 0) -> List[DocumentResponse]:
        """List documents in a namespace, newest first."""
        if limit < 1 or offset < 0:
            raise InvalidArgumentException("limit must be positive and offset non-negative")
        async with unit_of_work(self.session):
            ns = await self._get_namespace(namespace)
            documents = await self.documents.list_by_namespace(ns.id, limit=limit, offset=offset)
        return [DocumentResponse.model_validate(doc) for doc in documents]

    async def download_document(
        self, namespace: str, document_id: Union[str, UUID]
    ) -> Tuple[bytes, DocumentResponse]:
        """Read a document's bytes together with its record.

        Raises:
            NotFoundException: Unknown namespace or document, or content missing from the store
        """
        doc_id = parse_document_id(document_id)
        async with unit_of_work(self.session):
            ns = await self._get_namespace(namespace)
            document = await self._get_document(ns, doc_id)

        data = await asyncio.to_thread(self.store.download, str(ns.id), str(document.id), document.file_name)
        return data, DocumentResponse.model_validate(document)

    async def delete_document(self, namespace: str, document_id: Union[str, UUID]) -> None:
        """Delete a document record, its tag associations and its stored content."""
        doc_id = parse_document_id(document_id)
        async with unit_of_work(self.session):
            ns = await self._get_namespace(namespace)
            document = await self._get_document(ns, doc_id)
            removed = await self.document_tags.delete_for_document(document.id)
            await self.documents.delete(document)

        logger.info(f"Deleted document {doc_id} and {removed} tag association(s)")
        await self._remove_content(ns.id, doc_id, document.file_name)
