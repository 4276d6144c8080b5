"""Base repositories with the CRUD and sweep operations the services share."""
from typing import Any, Generic, Optional, Sequence, Type, TypeVar
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tagvault.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Generic repository for a model with an ``id`` primary key."""

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by_id(self, id: Any) -> Optional[ModelType]:
        """Get model by primary key ID, or None."""
        result = await self.session.execute(select(self.model).filter(self.model.id == id))
        return result.scalar_one_or_none()

    async def create(self, obj: ModelType) -> ModelType:
        """Insert a new row and load server-side values.

        Raises IntegrityError on a uniqueness collision; the caller owns the rollback.

        Args:
            obj: Model instance to create

        Returns:
            Created model instance with ID populated
        """
        self.session.add(obj)
        await self.session.flush()
        await self.session.refresh(obj)
        return obj

    async def delete(self, obj: ModelType) -> None:
        await self.session.delete(obj)
        await self.session.flush()

    async def delete_many(self, ids: Sequence[Any]) -> int:
        """Bulk delete by primary key.

        Returns:
            Number of deleted rows
        """
        if not ids:
            return 0
        result = await self.session.execute(delete(self.model).where(self.model.id.in_(list(ids))))
        return result.rowcount


class NamespacedRepository(BaseRepository[ModelType]):
    """Repository for a model carrying a ``namespace_id`` column.

    Every lookup in a namespaced repository is expected to filter on the
    namespace, so rows of one namespace never leak into another.
    """

    def in_namespace(self, namespace_id: UUID):
        """SELECT of this model restricted to one namespace."""
        return select(self.model).filter(self.model.namespace_id == namespace_id)

    async def delete_by_namespace(self, namespace_id: UUID) -> int:
        """Delete every row of this model in a namespace."""
        result = await self.session.execute(delete(self.model).where(self.model.namespace_id == namespace_id))
        return result.rowcount
