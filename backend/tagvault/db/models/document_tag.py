"""Document-Tag association model."""
from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from tagvault.db.base import Base, JSONType, utcnow


class DocumentTag(Base):
    """Association between a document and a tag, with tag-specific attributes."""

    __tablename__ = "document_tags"

    document_id = Column(Uuid, ForeignKey("documents.id", ondelete="CASCADE"), primary_key=True)
    tag_id = Column(Uuid, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True, index=True)
    attributes = Column(JSONType, nullable=True)
    attributes_version = Column(BigInteger, nullable=True)  # schema version at write time
    attributes_metadata = Column(JSONType, nullable=True)  # provenance
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    modified_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    document = relationship("Document", back_populates="tags")
    tag = relationship("Tag", back_populates="documents")
