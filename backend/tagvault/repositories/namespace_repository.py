"""Namespace repository."""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tagvault.db.models.namespace import Namespace
from tagvault.repositories.base_repository import BaseRepository


class NamespaceRepository(BaseRepository[Namespace]):
    """Repository for Namespace model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Namespace, session)

    async def get_by_name(self, name: str) -> Optional[Namespace]:
        """Get namespace by its unique name."""
        result = await self.session.execute(select(Namespace).filter(Namespace.name == name))
        return result.scalar_one_or_none()

    async def list_all(self) -> List[Namespace]:
        """List namespaces ordered by name."""
        result = await self.session.execute(select(Namespace).order_by(Namespace.name))
        return list(result.scalars().all())
