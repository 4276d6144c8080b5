"""Namespace lifecycle: the isolation boundary for tags, schemas and documents."""
import asyncio
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tagvault.db.models.namespace import Namespace
from tagvault.exceptions import AlreadyExistsException, NotFoundException, TagVaultException
from tagvault.repositories.document_repository import DocumentRepository
from tagvault.repositories.document_tag_repository import DocumentTagRepository
from tagvault.repositories.namespace_repository import NamespaceRepository
from tagvault.repositories.schema_repository import SchemaRepository
from tagvault.repositories.tag_repository import TagRepository
from tagvault.schemas.document import NamespaceResponse
from tagvault.services.tag_service import validate_tag_name
from tagvault.services.unit_of_work import unit_of_work
from tagvault.storage.base import ContentStore

logger = logging.getLogger(__name__)


class NamespaceService:
    """Creates, lists and deletes namespaces."""

    def __init__(self, session: AsyncSession, store: Optional[ContentStore] = None):
        """Initialize namespace service.

        Args:
            session: Async database session
            store: Content store holding document bytes, cleaned up on delete
        """
        self.session = session
        self.store = store
        self.namespaces = NamespaceRepository(session)
        self.documents = DocumentRepository(session)
        self.tags = TagRepository(session)
        self.schemas = SchemaRepository(session)
        self.document_tags = DocumentTagRepository(session)

    async def create_namespace(self, name: str) -> NamespaceResponse:
        """Create a namespace. Names follow the tag naming rule.

        Raises:
            InvalidArgumentException: Malformed name
            AlreadyExistsException: Name already taken
        """
        validate_tag_name(name)

        async with unit_of_work(self.session):
            if await self.namespaces.get_by_name(name) is not None:
                raise AlreadyExistsException("namespace", name)
            try:
                namespace = await self.namespaces.create(Namespace(name=name))
            except IntegrityError as e:
                raise AlreadyExistsException("namespace", name) from e

        logger.info(f"Created namespace {name}")
        return NamespaceResponse.model_validate(namespace)

    async def list_namespaces(self) -> List[NamespaceResponse]:
        async with unit_of_work(self.session):
            namespaces = await self.namespaces.list_all()
        return [NamespaceResponse.model_validate(ns) for ns in namespaces]

    async def get_namespace(self, name: str) -> NamespaceResponse:
        async with unit_of_work(self.session):
            namespace = await self.namespaces.get_by_name(name)
            if namespace is None:
                raise NotFoundException("namespace", name)
        return NamespaceResponse.model_validate(namespace)

    async def delete_namespace(self, name: str) -> None:
        """Delete a namespace with everything in it.

        Rows go in one transaction. Stored document bytes are removed after
        commit; failures there are logged and leave the deletion in place.

        Raises:
            NotFoundException: Unknown namespace
        """
        async with unit_of_work(self.session):
            namespace = await self.namespaces.get_by_name(name)
            if namespace is None:
                raise NotFoundException("namespace", name)

            documents = await self.documents.list_all_by_namespace(namespace.id)
            stored = [(str(namespace.id), str(doc.id), doc.file_name) for doc in documents]

            associations = await self.document_tags.delete_by_namespace(namespace.id)
            schemas = await self.schemas.delete_by_namespace(namespace.id)
            tags = await self.tags.delete_by_namespace(namespace.id)
            docs = await self.documents.delete_by_namespace(namespace.id)
            await self.namespaces.delete(namespace)

        logger.info(
            f"Deleted namespace {name}: {docs} documents, {tags} tags, "
            f"{schemas} schemas, {associations} associations"
        )

        if self.store is None:
            return
        for namespace_id, document_id, file_name in stored:
            try:
                await asyncio.to_thread(self.store.delete, namespace_id, document_id, file_name)
            except (OSError, TagVaultException) as e:
                logger.warning(f"Failed to remove content of document {document_id}: {e}")
