"""Tag repository with materialized-path hierarchy queries."""
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tagvault.db.models.tag import Tag
from tagvault.repositories.base_repository import NamespacedRepository


class TagRepository(NamespacedRepository[Tag]):
    """Repository for Tag model with hierarchy management."""

    def __init__(self, session: AsyncSession):
        """Initialize tag repository.

        Args:
            session: Async database session
        """
        super().__init__(Tag, session)

    async def get_by_path(self, namespace_id: UUID, path: str) -> Optional[Tag]:
        """Get tag by materialized path within a namespace.

        Args:
            namespace_id: Namespace UUID
            path: Materialized path, e.g. '/financial/reports'

        Returns:
            Tag instance or None if not found
        """
        result = await self.session.execute(self.in_namespace(namespace_id).filter(Tag.path == path))
        return result.scalar_one_or_none()

    async def list_by_namespace(self, namespace_id: UUID) -> List[Tag]:
        """List all tags in a namespace ordered by path."""
        result = await self.session.execute(self.in_namespace(namespace_id).order_by(Tag.path, Tag.id))
        return list(result.scalars().all())

    async def get_children(self, parent_tag_ids: Sequence[UUID]) -> List[Tag]:
        """Get all direct children of the given tags.

        Args:
            parent_tag_ids: Parent tag IDs

        Returns:
            List of child Tag instances
        """
        if not parent_tag_ids:
            return []
        result = await self.session.execute(
            select(Tag).filter(Tag.parent_id.in_(list(parent_tag_ids))).order_by(Tag.path)
        )
        return list(result.scalars().all())

    async def get_descendants(self, tag: Tag) -> List[Tag]:
        """Get every descendant of a tag, parents before their children.

        Walks parent_id links level by level, so the result doesn't depend on
        the stored paths being consistent.

        Args:
            tag: Root of the subtree (not included in the result)

        Returns:
            List of descendant Tag instances in breadth-first order
        """
        descendants: List[Tag] = []
        seen = {tag.id}
        frontier = [tag.id]

        while frontier:
            children = [child for child in await self.get_children(frontier) if child.id not in seen]
            seen.update(child.id for child in children)
            descendants.extend(children)
            frontier = [child.id for child in children]

        return descendants
