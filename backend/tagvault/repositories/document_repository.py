"""Document repository with namespace isolation."""
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from tagvault.db.models.document import Document
from tagvault.repositories.base_repository import NamespacedRepository


class DocumentRepository(NamespacedRepository[Document]):
    """Repository for Document model."""

    def __init__(self, session: AsyncSession):
        """Initialize document repository.

        Args:
            session: Async database session
        """
        super().__init__(Document, session)

    async def get_in_namespace(self, doc_id: UUID, namespace_id: UUID) -> Optional[Document]:
        """Get document by ID with a namespace check for isolation.

        Args:
            doc_id: Document UUID
            namespace_id: Namespace the document must belong to

        Returns:
            Document instance or None if absent or in another namespace
        """
        result = await self.session.execute(self.in_namespace(namespace_id).filter(Document.id == doc_id))
        return result.scalar_one_or_none()

    async def get_by_checksum(self, namespace_id: UUID, checksum: str) -> Optional[Document]:
        """Find a document with identical content in a namespace."""
        result = await self.session.execute(
            self.in_namespace(namespace_id).filter(Document.checksum_sha256 == checksum)
        )
        return result.scalar_one_or_none()

    async def list_by_namespace(self, namespace_id: UUID, limit: int = 100, offset: int = 0) -> List[Document]:
        """List documents in a namespace, newest first."""
        result = await self.session.execute(
            self.in_namespace(namespace_id)
            .order_by(Document.created_at.desc(), Document.id)
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def list_all_by_namespace(self, namespace_id: UUID) -> List[Document]:
        """List every document in a namespace."""
        result = await self.session.execute(self.in_namespace(namespace_id))
        return list(result.scalars().all())
