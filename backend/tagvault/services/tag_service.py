"""Tag hierarchy service: creation, rename, re-parenting and deletion of tags.

Tags form a per-namespace tree addressed by materialized paths such as
``/financial/reports/2023``. This service owns path computation. Moving or
renaming a tag rewrites the paths of its whole subtree in the same
transaction, and a tag can never be moved under itself or one of its
descendants.
"""
import hashlib
import logging
import re
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tagvault.db.models.attribute_schema import AttributeSchema
from tagvault.db.models.namespace import Namespace
from tagvault.db.models.tag import Tag
from tagvault.events import subjects
from tagvault.events.publisher import EventPublisher, publish_safely
from tagvault.exceptions import (
    AlreadyExistsException,
    InvalidArgumentException,
    InvalidParentReferenceException,
    NotFoundException,
    ParentNotFoundException,
)
from tagvault.repositories.document_tag_repository import DocumentTagRepository
from tagvault.repositories.namespace_repository import NamespaceRepository
from tagvault.repositories.schema_repository import SchemaRepository
from tagvault.repositories.tag_repository import TagRepository
from tagvault.schemas.attributes import RawJSON
from tagvault.schemas.tag import TagResponse
from tagvault.services.schema_service import SchemaService, schema_changed_payload
from tagvault.services.schema_validator import validate_schema_shape
from tagvault.services.unit_of_work import unit_of_work

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100
MAX_PATH_LENGTH = 255

TAG_NAME_REGEX = re.compile(r"[a-zA-Z0-9][a-zA-Z0-9_-]{0,98}[a-zA-Z0-9]|[a-zA-Z0-9]")
COLOR_REGEX = re.compile(r"#[0-9A-Fa-f]{6}")


def generate_color_from_name(name: str) -> str:
    """Derive a deterministic hex color from a tag name.

    The first 8 bytes of the SHA-256 digest seed three channels kept in the
    80-255 range so colors stay readable.

    Args:
        name: Tag name

    Returns:
        Color like '#A1B2C3'
    """
    seed = int.from_bytes(hashlib.sha256(name.encode("utf-8")).digest()[:8], "big")
    r = 80 + (seed >> 16) % 176
    g = 80 + (seed >> 8) % 176
    b = 80 + seed % 176
    return f"#{r:02X}{g:02X}{b:02X}"


def validate_tag_name(name: Optional[str]) -> str:
    """Check a tag name against the naming rule.

    Raises:
        InvalidArgumentException: If the name is empty, too long or malformed
    """
    if not name:
        raise InvalidArgumentException("invalid tag name: name cannot be empty")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidArgumentException(f"invalid tag name: name cannot exceed {MAX_NAME_LENGTH} characters")
    if not TAG_NAME_REGEX.fullmatch(name):
        raise InvalidArgumentException(
            "invalid tag name: name must contain only alphanumeric characters, hyphens, and underscores, "
            "and cannot start or end with hyphen or underscore"
        )
    return name


def validate_tag_path(path: Optional[str], what: str = "tag path") -> str:
    """Check a materialized path: leading '/', bounded length, valid segments.

    Raises:
        InvalidArgumentException: If the path is malformed
    """
    if not path:
        raise InvalidArgumentException(f"invalid {what}: path cannot be empty")
    if len(path) > MAX_PATH_LENGTH:
        raise InvalidArgumentException(f"invalid {what}: path cannot exceed {MAX_PATH_LENGTH} characters")
    if not path.startswith("/"):
        raise InvalidArgumentException(f"invalid {what}: path must start with /")
    for segment in path[1:].split("/"):
        if not TAG_NAME_REGEX.fullmatch(segment):
            raise InvalidArgumentException(f"invalid {what}: segment {segment!r} is not a valid tag name")
    return path


def validate_color(color: Optional[str]) -> Optional[str]:
    """Check a color; None and '' both mean no color given."""
    if not color:
        return None
    if not COLOR_REGEX.fullmatch(color):
        raise InvalidArgumentException("invalid color: color must be a valid hex color code (e.g., #FF0000)")
    return color


def build_tag_path(parent_path: Optional[str], name: str) -> str:
    """Materialized path of a tag under a parent ('' or None for root)."""
    if not parent_path:
        return "/" + name
    return parent_path.rstrip("/") + "/" + name


def _check_path_length(path: str) -> None:
    if len(path) > MAX_PATH_LENGTH:
        raise InvalidArgumentException(f"invalid tag path: {path!r} exceeds {MAX_PATH_LENGTH} characters")


def parent_path_of(path: str) -> Optional[str]:
    parent, _, _ = path.rpartition("/")
    return parent or None


class TagService:
    """Service owning the tag tree of each namespace."""

    def __init__(
        self,
        session: AsyncSession,
        publisher: Optional[EventPublisher] = None,
        schema_service: Optional[SchemaService] = None,
    ):
        """Initialize the tag service.

        Args:
            session: Async database session, committed per operation
            publisher: Event publisher for schema.changed events
            schema_service: Schema service sharing the same session
        """
        self.session = session
        self.publisher = publisher
        self.schema_service = schema_service or SchemaService(session, publisher)
        self.namespaces = NamespaceRepository(session)
        self.tags = TagRepository(session)
        self.schemas = SchemaRepository(session)
        self.document_tags = DocumentTagRepository(session)

    async def _get_namespace(self, name: str) -> Namespace:
        namespace = await self.namespaces.get_by_name(name)
        if namespace is None:
            raise NotFoundException("namespace", name)
        return namespace

    async def _get_tag(self, namespace: Namespace, path: str) -> Tag:
        tag = await self.tags.get_by_path(namespace.id, path)
        if tag is None:
            raise NotFoundException("tag", path)
        return tag

    def _to_response(self, tag: Tag, schema: Optional[AttributeSchema]) -> TagResponse:
        return TagResponse(
            name=tag.name,
            path=tag.path,
            description=tag.description,
            color=tag.color,
            parent_path=parent_path_of(tag.path),
            json_schema=schema.json_schema if schema is not None else None,
            schema_version=schema.version if schema is not None else None,
            created_at=tag.created_at,
            modified_at=tag.modified_at,
        )

    async def _resolve_parent_for_update(
        self, namespace: Namespace, tag: Tag, parent_path: Optional[str]
    ) -> Optional[Tag]:
        """Pick the parent a tag will have after an update.

        None keeps the current parent, '' moves the tag to the root, anything
        else is resolved and checked so the tag doesn't end up in its own subtree.
        """
        if parent_path is None:
            if tag.parent_id is None:
                return None
            parent = await self.tags.get_by_id(tag.parent_id)
            if parent is None:
                raise ParentNotFoundException(str(tag.parent_id))
            return parent

        if parent_path == "":
            return None

        parent = await self.tags.get_by_path(namespace.id, parent_path)
        if parent is None:
            raise ParentNotFoundException(parent_path)

        if (
            parent.id == tag.id
            or parent.path == tag.path
            or parent.path.startswith(tag.path + "/")
        ):
            raise InvalidParentReferenceException(tag.path, parent.path)

        return parent

    @staticmethod
    def _rewrite_descendant_paths(tag: Tag, descendants: List[Tag]) -> int:
        """Recompute every descendant's path from its parent's path.

        Descendants must be in breadth-first order and loaded before the tag
        itself is changed, so no query autoflushes a half-applied move.
        """
        paths: Dict[UUID, str] = {tag.id: tag.path}
        for child in descendants:
            new_path = build_tag_path(paths[child.parent_id], child.name)
            _check_path_length(new_path)
            child.path = new_path
            paths[child.id] = new_path
        return len(descendants)

    async def create_tag(
        self,
        namespace: str,
        name: str,
        description: Optional[str] = None,
        parent_path: Optional[str] = None,
        color: Optional[str] = None,
        json_schema: Optional[RawJSON] = None,
    ) -> TagResponse:
        """Create a tag, optionally under a parent and with an attribute schema.

        Args:
            namespace: Namespace name
            name: Leaf segment of the new tag
            description: Free text
            parent_path: Path of the parent tag, None or '' for a root tag
            color: '#RRGGBB', derived from the name when omitted
            json_schema: Primitives-only attribute schema

        Returns:
            The created tag

        Raises:
            InvalidArgumentException: Malformed name, parent path, color or schema
            NotFoundException: Unknown namespace or parent
            AlreadyExistsException: A tag already has the resulting path
        """
        validate_tag_name(name)
        if parent_path:
            validate_tag_path(parent_path, "parent path")
        final_color = validate_color(color) or generate_color_from_name(name)
        schema_document = validate_schema_shape(json_schema) if json_schema else None

        async with unit_of_work(self.session):
            ns = await self._get_namespace(namespace)

            parent = None
            if parent_path:
                parent = await self.tags.get_by_path(ns.id, parent_path)
                if parent is None:
                    raise ParentNotFoundException(parent_path)

            path = build_tag_path(parent.path if parent else None, name)
            _check_path_length(path)

            tag = Tag(
                namespace_id=ns.id,
                name=name,
                description=description,
                path=path,
                parent_id=parent.id if parent else None,
                color=final_color,
            )
            try:
                await self.tags.create(tag)
            except IntegrityError as e:
                raise AlreadyExistsException("tag", path) from e

            schema = None
            if schema_document is not None:
                schema = await self.schema_service.store(ns.id, tag.id, schema_document)

        logger.info(f"Created tag {tag.path} in namespace {ns.name}")

        if schema is not None:
            await publish_safely(
                self.publisher, subjects.SCHEMA_CHANGED, schema_changed_payload(ns.name, tag.path, None, schema)
            )

        return self._to_response(tag, schema)

    async def get_tag_by_path(self, namespace: str, path: str) -> TagResponse:
        """Get a tag and its latest schema by path.

        Raises:
            NotFoundException: Unknown namespace or tag
        """
        validate_tag_path(path)
        async with unit_of_work(self.session):
            ns = await self._get_namespace(namespace)
            tag = await self._get_tag(ns, path)
            schema = await self.schemas.get_latest(ns.id, tag.id)
        return self._to_response(tag, schema)

    async def list_tags(self, namespace: str) -> List[TagResponse]:
        """List all tags of a namespace ordered by path."""
        async with unit_of_work(self.session):
            ns = await self._get_namespace(namespace)
            tags = await self.tags.list_by_namespace(ns.id)
            results = []
            for tag in tags:
                schema = await self.schemas.get_latest(ns.id, tag.id)
                results.append(self._to_response(tag, schema))
        return results

    async def update_tag(
        self,
        namespace: str,
        path: str,
        new_name: Optional[str] = None,
        description: Optional[str] = None,
        new_parent_path: Optional[str] = None,
        color: Optional[str] = None,
        json_schema: Optional[RawJSON] = None,
    ) -> TagResponse:
        """Rename, move, recolor or re-schema a tag.

        Args:
            namespace: Namespace name
            path: Current path of the tag
            new_name: New leaf name, None keeps the current one
            description: New description, None keeps the current one
            new_parent_path: None keeps the parent, '' moves to the root
            color: New color, None keeps the current one
            json_schema: New schema; stored as a new version only if it differs

        Returns:
            The updated tag

        Raises:
            InvalidParentReferenceException: The new parent is the tag or lies in its subtree
            AlreadyExistsException: The new path (or a rewritten descendant path) collides
        """
        validate_tag_path(path)
        if new_name:
            validate_tag_name(new_name)
        if new_parent_path:
            validate_tag_path(new_parent_path, "parent path")
        new_color = validate_color(color)
        schema_document = validate_schema_shape(json_schema) if json_schema else None

        async with unit_of_work(self.session):
            ns = await self._get_namespace(namespace)
            tag = await self._get_tag(ns, path)
            old_schema = await self.schemas.get_latest(ns.id, tag.id)

            name = new_name or tag.name
            parent = await self._resolve_parent_for_update(ns, tag, new_parent_path)
            updated_path = build_tag_path(parent.path if parent else None, name)
            _check_path_length(updated_path)

            descendants = await self.tags.get_descendants(tag)

            old_path = tag.path
            tag.name = name
            tag.parent_id = parent.id if parent else None
            tag.path = updated_path
            if description is not None:
                tag.description = description
            tag.color = new_color or tag.color or generate_color_from_name(name)

            moved = 0
            if updated_path != old_path:
                moved = self._rewrite_descendant_paths(tag, descendants)

            try:
                await self.session.flush()
            except IntegrityError as e:
                raise AlreadyExistsException("tag", updated_path) from e
            await self.session.refresh(tag)

            schema = old_schema
            schema_changed = False
            if schema_document is not None and (old_schema is None or old_schema.json_schema != schema_document):
                schema = await self.schema_service.store(ns.id, tag.id, schema_document)
                schema_changed = True

        if updated_path != old_path:
            logger.info(f"Moved tag {old_path} -> {updated_path} ({moved} descendants rewritten)")

        if schema_changed:
            await publish_safely(
                self.publisher,
                subjects.SCHEMA_CHANGED,
                schema_changed_payload(ns.name, tag.path, old_schema, schema),
            )

        return self._to_response(tag, schema)

    async def delete_tag(self, namespace: str, path: str) -> int:
        """Delete a tag with its whole subtree.

        Associations and schemas of every removed tag are swept first, so the
        result doesn't depend on database-level cascades.

        Returns:
            Number of tags removed

        Raises:
            NotFoundException: Unknown namespace or tag
        """
        validate_tag_path(path)
        async with unit_of_work(self.session):
            ns = await self._get_namespace(namespace)
            tag = await self._get_tag(ns, path)

            subtree = [tag] + await self.tags.get_descendants(tag)
            tag_ids = [t.id for t in subtree]

            associations = await self.document_tags.delete_for_tags(tag_ids)
            await self.schemas.delete_for_tags(tag_ids)
            # parent_id cascades may drop descendants before the IN list reaches
            # them, so the rowcount undercounts the subtree.
            await self.tags.delete_many(tag_ids)
            removed = len(tag_ids)

        logger.info(
            f"Deleted tag {path} in namespace {namespace}: {removed} tags, {associations} document associations"
        )
        return removed
