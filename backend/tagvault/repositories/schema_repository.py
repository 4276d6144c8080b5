"""Attribute schema store: immutable, monotonically versioned schemas."""
import logging
from typing import Any, Dict, Optional, Sequence
from uuid import UUID

from sqlalchemy import and_, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tagvault.db.models.attribute_schema import GLOBAL_SCOPE, AttributeSchema
from tagvault.exceptions import InternalException
from tagvault.repositories.base_repository import NamespacedRepository

logger = logging.getLogger(__name__)


def scope_key_for(tag_id: Optional[UUID]) -> str:
    """Scope key for a tag's schemas, or the namespace-global scope when tag_id is None."""
    return tag_id.hex if tag_id is not None else GLOBAL_SCOPE


class SchemaRepository(NamespacedRepository[AttributeSchema]):
    """Repository for AttributeSchema versions."""

    def __init__(self, session: AsyncSession):
        super().__init__(AttributeSchema, session)

    async def get_latest(self, namespace_id: UUID, tag_id: Optional[UUID]) -> Optional[AttributeSchema]:
        """Get the latest schema version for a tag or the namespace-global scope.

        Args:
            namespace_id: Namespace UUID
            tag_id: Tag UUID, or None for the global schema

        Returns:
            AttributeSchema or None if nothing was ever registered
        """
        result = await self.session.execute(
            self.in_namespace(namespace_id)
            .filter(AttributeSchema.scope_key == scope_key_for(tag_id))
            .order_by(AttributeSchema.version.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def latest_version(self, namespace_id: UUID, tag_id: Optional[UUID]) -> int:
        """Highest assigned version for a scope, 0 when there is none."""
        result = await self.session.execute(
            select(func.coalesce(func.max(AttributeSchema.version), 0)).filter(
                and_(
                    AttributeSchema.namespace_id == namespace_id,
                    AttributeSchema.scope_key == scope_key_for(tag_id),
                )
            )
        )
        return int(result.scalar_one())

    async def create_version(
        self,
        namespace_id: UUID,
        tag_id: Optional[UUID],
        json_schema: Dict[str, Any],
        max_retries: int = 3,
    ) -> AttributeSchema:
        """Store a schema as the next version of its scope.

        The version is read as max+1 and inserted inside a SAVEPOINT. A
        concurrent writer that took the same version trips the unique
        (namespace_id, scope_key, version) constraint, in which case the read
        is repeated, up to max_retries attempts.

        Args:
            namespace_id: Namespace UUID
            tag_id: Tag UUID, or None for the global schema
            json_schema: Already validated schema document
            max_retries: Attempts before giving up

        Returns:
            The stored AttributeSchema

        Raises:
            InternalException: If every attempt collided
        """
        for attempt in range(1, max_retries + 1):
            version = await self.latest_version(namespace_id, tag_id) + 1
            schema = AttributeSchema(
                namespace_id=namespace_id,
                tag_id=tag_id,
                scope_key=scope_key_for(tag_id),
                version=version,
                json_schema=json_schema,
            )
            try:
                async with self.session.begin_nested():
                    self.session.add(schema)
            except IntegrityError:
                logger.warning(
                    f"Schema version {version} for scope {scope_key_for(tag_id)} already taken "
                    f"(attempt {attempt}/{max_retries}), retrying"
                )
                continue

            await self.session.refresh(schema)
            return schema

        raise InternalException(
            f"could not assign a schema version for scope {scope_key_for(tag_id)} after {max_retries} attempts"
        )

    async def delete_for_tags(self, tag_ids: Sequence[UUID]) -> int:
        """Delete every schema version owned by the given tags."""
        if not tag_ids:
            return 0
        result = await self.session.execute(
            delete(AttributeSchema).where(AttributeSchema.tag_id.in_(list(tag_ids)))
        )
        return result.rowcount
