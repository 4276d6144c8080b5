"""Attribute schema management for tags and namespace-global scope."""
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from tagvault.core.config import settings
from tagvault.db.models.attribute_schema import AttributeSchema
from tagvault.db.models.namespace import Namespace
from tagvault.events import subjects
from tagvault.events.publisher import EventPublisher, publish_safely
from tagvault.exceptions import NotFoundException
from tagvault.repositories.namespace_repository import NamespaceRepository
from tagvault.repositories.schema_repository import SchemaRepository
from tagvault.schemas.attributes import RawJSON
from tagvault.schemas.tag import SchemaResponse
from tagvault.services.schema_validator import validate_schema_shape
from tagvault.services.unit_of_work import unit_of_work

logger = logging.getLogger(__name__)


def schema_changed_payload(
    namespace: str,
    tag_path: Optional[str],
    old: Optional[AttributeSchema],
    new: AttributeSchema,
) -> Dict[str, Any]:
    return {
        "namespace": namespace,
        "tag_path": tag_path,
        "version": new.version,
        "old_json_schema": old.json_schema if old is not None else None,
        "new_json_schema": new.json_schema,
    }


class SchemaService:
    """Validates schemas and writes them as new versions.

    Tag-scoped writes are driven by TagService inside its own transaction
    (``store``); the namespace-global schema is managed directly here.
    """

    def __init__(
        self,
        session: AsyncSession,
        publisher: Optional[EventPublisher] = None,
        max_retries: Optional[int] = None,
    ):
        """Initialize the schema service.

        Args:
            session: Async database session
            publisher: Event publisher for schema.changed events
            max_retries: Version assignment attempts (defaults to settings.SCHEMA_VERSION_MAX_RETRIES)
        """
        self.session = session
        self.publisher = publisher
        self.max_retries = max_retries or settings.SCHEMA_VERSION_MAX_RETRIES
        self.schemas = SchemaRepository(session)
        self.namespaces = NamespaceRepository(session)

    async def latest(self, namespace_id: UUID, tag_id: Optional[UUID]) -> Optional[AttributeSchema]:
        """Latest schema for a tag, or for the namespace when tag_id is None."""
        return await self.schemas.get_latest(namespace_id, tag_id)

    async def store(self, namespace_id: UUID, tag_id: Optional[UUID], json_schema: Dict[str, Any]) -> AttributeSchema:
        """Write an already validated schema as the next version. Does not commit."""
        schema = await self.schemas.create_version(namespace_id, tag_id, json_schema, self.max_retries)
        logger.info(f"Stored schema version {schema.version} for scope {schema.scope_key}")
        return schema

    async def _get_namespace(self, name: str) -> Namespace:
        namespace = await self.namespaces.get_by_name(name)
        if namespace is None:
            raise NotFoundException("namespace", name)
        return namespace

    async def set_global_schema(self, namespace: str, json_schema: RawJSON) -> SchemaResponse:
        """Register a new namespace-global schema version.

        An identical schema does not create a new version.

        Args:
            namespace: Namespace name
            json_schema: Schema as JSON text or mapping

        Returns:
            The latest global schema
        """
        document = validate_schema_shape(json_schema)

        async with unit_of_work(self.session):
            ns = await self._get_namespace(namespace)
            old = await self.latest(ns.id, None)
            if old is not None and old.json_schema == document:
                return SchemaResponse.model_validate(old)
            new = await self.store(ns.id, None, document)

        await publish_safely(
            self.publisher, subjects.SCHEMA_CHANGED, schema_changed_payload(ns.name, None, old, new)
        )
        return SchemaResponse.model_validate(new)

    async def get_global_schema(self, namespace: str) -> Optional[SchemaResponse]:
        """Latest namespace-global schema, or None if none was registered."""
        async with unit_of_work(self.session):
            ns = await self._get_namespace(namespace)
            schema = await self.latest(ns.id, None)
        return SchemaResponse.model_validate(schema) if schema is not None else None
