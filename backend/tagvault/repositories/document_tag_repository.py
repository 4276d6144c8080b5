"""Document-tag association repository."""
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import and_, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tagvault.db.models.document import Document
from tagvault.db.models.document_tag import DocumentTag
from tagvault.db.models.tag import Tag


class DocumentTagRepository:
    """Repository for DocumentTag associations (composite primary key)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, document_id: UUID, tag_id: UUID) -> Optional[DocumentTag]:
        """Get the association between one document and one tag."""
        result = await self.session.execute(
            select(DocumentTag).filter(
                and_(DocumentTag.document_id == document_id, DocumentTag.tag_id == tag_id)
            )
        )
        return result.scalar_one_or_none()

    async def list_for_document(self, document_id: UUID) -> List[Tuple[DocumentTag, Tag]]:
        """List a document's associations with their tags, ordered by tag path.

        Args:
            document_id: Document UUID

        Returns:
            List of (DocumentTag, Tag) tuples
        """
        result = await self.session.execute(
            select(DocumentTag, Tag)
            .join(Tag, Tag.id == DocumentTag.tag_id)
            .filter(DocumentTag.document_id == document_id)
            .order_by(Tag.path)
        )
        return [(row.DocumentTag, row.Tag) for row in result.all()]

    async def add(self, association: DocumentTag) -> DocumentTag:
        self.session.add(association)
        await self.session.flush()
        await self.session.refresh(association)
        return association

    async def remove(self, document_id: UUID, tag_id: UUID) -> bool:
        """Remove one association.

        Returns:
            True if a row was deleted
        """
        result = await self.session.execute(
            delete(DocumentTag).where(
                and_(DocumentTag.document_id == document_id, DocumentTag.tag_id == tag_id)
            )
        )
        return result.rowcount > 0

    async def delete_for_tags(self, tag_ids: Sequence[UUID]) -> int:
        """Remove every association referencing the given tags."""
        if not tag_ids:
            return 0
        result = await self.session.execute(
            delete(DocumentTag).where(DocumentTag.tag_id.in_(list(tag_ids)))
        )
        return result.rowcount

    async def delete_for_document(self, document_id: UUID) -> int:
        """Remove every association of one document."""
        result = await self.session.execute(
            delete(DocumentTag).where(DocumentTag.document_id == document_id)
        )
        return result.rowcount

    async def delete_by_namespace(self, namespace_id: UUID) -> int:
        """Remove every association of documents in a namespace."""
        document_ids = select(Document.id).where(Document.namespace_id == namespace_id)
        result = await self.session.execute(
            delete(DocumentTag).where(DocumentTag.document_id.in_(document_ids))
        )
        return result.rowcount
