"""Document-tag associations and their attributes."""
import logging
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from tagvault.core.config import settings
from tagvault.db.models.document import Document
from tagvault.db.models.document_tag import DocumentTag
from tagvault.db.models.namespace import Namespace
from tagvault.db.models.tag import Tag
from tagvault.events import subjects
from tagvault.events.publisher import EventPublisher, publish_safely
from tagvault.exceptions import InvalidArgumentException, NotFoundException
from tagvault.repositories.document_repository import DocumentRepository
from tagvault.repositories.document_tag_repository import DocumentTagRepository
from tagvault.repositories.namespace_repository import NamespaceRepository
from tagvault.repositories.schema_repository import SchemaRepository
from tagvault.repositories.tag_repository import TagRepository
from tagvault.schemas.attributes import Attributes, RawJSON, parse_attributes
from tagvault.schemas.document import AttributesResponse, DocumentTagResponse
from tagvault.schemas.provenance import AttributesMetadata, ExtractionMethod
from tagvault.services.schema_validator import validate_attributes
from tagvault.services.unit_of_work import unit_of_work

logger = logging.getLogger(__name__)

DEFAULT_ACTOR = settings.DEFAULT_ACTOR


def parse_document_id(document_id: Union[str, UUID]) -> UUID:
    """Parse a document ID, raising InvalidArgumentException when malformed."""
    if isinstance(document_id, UUID):
        return document_id
    try:
        return UUID(str(document_id))
    except ValueError as e:
        raise InvalidArgumentException(f"invalid document ID: {document_id!r}") from e


def _coerce_method(method: Union[str, ExtractionMethod]) -> ExtractionMethod:
    try:
        return ExtractionMethod(method)
    except ValueError as e:
        raise InvalidArgumentException(f"invalid extraction method: {method!r}") from e


def _check_confidence(confidence: Optional[float]) -> Optional[float]:
    if confidence is not None and not 0.0 <= confidence <= 1.0:
        raise InvalidArgumentException(f"confidence must be between 0.0 and 1.0, got {confidence}")
    return confidence


class DocumentTagService:
    """Service for tagging documents and managing attributes.

    Tag associations carry attributes validated against the tag's latest
    schema. Documents also carry global attributes validated against the
    namespace-global schema. Every attribute write records provenance.
    """

    def __init__(self, session: AsyncSession, publisher: Optional[EventPublisher] = None):
        """Initialize document tag service.

        Args:
            session: Async database session
            publisher: Event publisher for tags.extracted events
        """
        self.session = session
        self.publisher = publisher
        self.namespaces = NamespaceRepository(session)
        self.documents = DocumentRepository(session)
        self.tags = TagRepository(session)
        self.schemas = SchemaRepository(session)
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

    async def _get_tag(self, namespace: Namespace, path: str) -> Tag:
        tag = await self.tags.get_by_path(namespace.id, path)
        if tag is None:
            raise NotFoundException("tag", path)
        return tag

    async def _get_association(self, document: Document, tag: Tag) -> DocumentTag:
        association = await self.document_tags.get(document.id, tag.id)
        if association is None:
            raise NotFoundException("document tag", f"{document.id} {tag.path}")
        return association

    @staticmethod
    def _to_response(association: DocumentTag, tag: Tag) -> DocumentTagResponse:
        return DocumentTagResponse(
            name=tag.name,
            path=tag.path,
            color=tag.color,
            attributes=association.attributes,
            metadata=AttributesMetadata.from_stored(association.attributes_metadata),
            updated_at=association.modified_at,
        )

    async def attach_tag(
        self,
        namespace: str,
        document_id: Union[str, UUID],
        tag_path: str,
        attributes: Optional[RawJSON] = None,
        extraction_method: Union[str, ExtractionMethod] = ExtractionMethod.MANUAL,
        actor: str = DEFAULT_ACTOR,
        confidence: Optional[float] = None,
    ) -> DocumentTagResponse:
        """Apply a tag to a document, or replace the payload of an existing association.

        Args:
            namespace: Namespace name
            document_id: Document UUID
            tag_path: Path of the tag to apply
            attributes: Tag-specific attributes as JSON text or mapping
            extraction_method: 'manual' or 'automatic'
            actor: Who applied the tag
            confidence: Extraction confidence between 0.0 and 1.0

        Returns:
            The association

        Raises:
            InvalidArgumentException: Malformed ID or attributes, or attributes rejected by the schema
            NotFoundException: Unknown namespace, tag or document
        """
        doc_id = parse_document_id(document_id)
        attrs = parse_attributes(attributes)
        method = _coerce_method(extraction_method)
        _check_confidence(confidence)
        actor = actor or DEFAULT_ACTOR

        async with unit_of_work(self.session):
            ns = await self._get_namespace(namespace)
            tag = await self._get_tag(ns, tag_path)
            document = await self._get_document(ns, doc_id)

            schema = await self.schemas.get_latest(ns.id, tag.id)
            if attrs is not None:
                validate_attributes(schema.json_schema if schema else None, attrs)

            metadata = AttributesMetadata.build(attrs or {}, method, actor, confidence).to_stored()
            version = schema.version if schema and attrs is not None else None

            association = await self.document_tags.get(document.id, tag.id)
            if association is None:
                association = await self.document_tags.add(
                    DocumentTag(
                        document_id=document.id,
                        tag_id=tag.id,
                        attributes=attrs,
                        attributes_version=version,
                        attributes_metadata=metadata,
                    )
                )
            else:
                association.attributes = attrs
                association.attributes_version = version
                association.attributes_metadata = metadata
                await self.session.flush()
                await self.session.refresh(association)

        logger.info(f"Attached tag {tag.path} to document {document.id} ({method.value} by {actor})")

        await publish_safely(
            self.publisher,
            subjects.TAG_EXTRACTED,
            {
                "namespace": ns.name,
                "document_id": str(document.id),
                "tag_path": tag.path,
                "attributes": attrs,
                "extraction_method": method.value,
                "actor": actor,
                "confidence": confidence,
            },
        )

        return self._to_response(association, tag)

    async def detach_tag(self, namespace: str, document_id: Union[str, UUID], tag_path: str) -> None:
        """Remove a tag from a document.

        Raises:
            NotFoundException: Unknown namespace, tag or document, or the tag isn't applied
        """
        doc_id = parse_document_id(document_id)

        async with unit_of_work(self.session):
            ns = await self._get_namespace(namespace)
            tag = await self._get_tag(ns, tag_path)
            document = await self._get_document(ns, doc_id)

            if not await self.document_tags.remove(document.id, tag.id):
                raise NotFoundException("document tag", f"{document.id} {tag.path}")

        logger.info(f"Detached tag {tag_path} from document {doc_id}")

    async def list_document_tags(self, namespace: str, document_id: Union[str, UUID]) -> List[DocumentTagResponse]:
        """List the tags applied to a document, ordered by path."""
        doc_id = parse_document_id(document_id)

        async with unit_of_work(self.session):
            ns = await self._get_namespace(namespace)
            document = await self._get_document(ns, doc_id)
            rows = await self.document_tags.list_for_document(document.id)

        return [self._to_response(association, tag) for association, tag in rows]

    async def get_attributes(
        self,
        namespace: str,
        document_id: Union[str, UUID],
        tag_path: Optional[str] = None,
    ) -> AttributesResponse:
        """Get a document's global attributes, or those of one of its tags.

        Args:
            namespace: Namespace name
            document_id: Document UUID
            tag_path: Tag path, or None for the document's global attributes
        """
        doc_id = parse_document_id(document_id)

        async with unit_of_work(self.session):
            ns = await self._get_namespace(namespace)
            document = await self._get_document(ns, doc_id)
            if tag_path:
                tag = await self._get_tag(ns, tag_path)
                target = await self._get_association(document, tag)
            else:
                target = document

        return AttributesResponse(
            attributes=target.attributes,
            metadata=AttributesMetadata.from_stored(target.attributes_metadata),
            schema_version=target.attributes_version,
        )

    async def update_attributes(
        self,
        namespace: str,
        document_id: Union[str, UUID],
        tag_path: Optional[str],
        attributes: RawJSON,
        extraction_method: Union[str, ExtractionMethod] = ExtractionMethod.MANUAL,
        actor: str = DEFAULT_ACTOR,
        confidence: Optional[float] = None,
    ) -> AttributesResponse:
        """Patch a document's global attributes or the attributes of one of its tags.

        The payload is merged over the stored attributes and the merged map is
        validated against the latest applicable schema before anything is
        written. Provenance is replaced for the touched fields only.

        Args:
            namespace: Namespace name
            document_id: Document UUID
            tag_path: Tag path, or None/'' for the document's global attributes
            attributes: Fields to set, as JSON text or mapping
            extraction_method: 'manual' or 'automatic'
            actor: Who made the change
            confidence: Extraction confidence between 0.0 and 1.0

        Returns:
            The stored attributes after the update

        Raises:
            InvalidArgumentException: Malformed input or merged attributes rejected by the schema
            NotFoundException: Unknown namespace, document or tag, or the tag isn't applied
        """
        doc_id = parse_document_id(document_id)
        patch = parse_attributes(attributes)
        if patch is None:
            raise InvalidArgumentException("attributes are required")
        method = _coerce_method(extraction_method)
        _check_confidence(confidence)
        actor = actor or DEFAULT_ACTOR

        async with unit_of_work(self.session):
            ns = await self._get_namespace(namespace)
            document = await self._get_document(ns, doc_id)

            target: Union[Document, DocumentTag]
            if tag_path:
                tag = await self._get_tag(ns, tag_path)
                target = await self._get_association(document, tag)
                schema = await self.schemas.get_latest(ns.id, tag.id)
            else:
                target = document
                schema = await self.schemas.get_latest(ns.id, None)

            merged: Attributes = dict(target.attributes or {})
            merged.update(patch)
            validate_attributes(schema.json_schema if schema else None, merged)

            update = AttributesMetadata.build(
                patch, method, actor, confidence, include_association=bool(tag_path)
            )
            existing = AttributesMetadata.from_stored(target.attributes_metadata)
            metadata = existing.merge(update) if existing is not None else update

            target.attributes = merged
            target.attributes_version = schema.version if schema else None
            target.attributes_metadata = metadata.to_stored()
            await self.session.flush()

        logger.info(
            f"Updated {len(patch)} attribute(s) on document {doc_id}"
            + (f" tag {tag_path}" if tag_path else " (global)")
        )

        return AttributesResponse(
            attributes=merged,
            metadata=metadata,
            schema_version=target.attributes_version,
        )

