"""Document model carrying global attributes."""
import uuid as uuid_pkg

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Index, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from tagvault.db.base import Base, JSONType, utcnow


class Document(Base):
    """Document record. The bytes live in the content store."""

    __tablename__ = "documents"

    id = Column(Uuid, primary_key=True, default=uuid_pkg.uuid4)
    namespace_id = Column(Uuid, ForeignKey("namespaces.id", ondelete="CASCADE"), nullable=False, index=True)

    # File metadata
    file_name = Column(String(255), nullable=False)
    title = Column(String(255), nullable=False)
    mime_type = Column(String(100), nullable=False)
    checksum_sha256 = Column(String(64), nullable=False)
    file_size = Column(BigInteger, nullable=False)

    # Global attributes, validated against the namespace-global schema
    attributes = Column(JSONType, nullable=True)
    attributes_version = Column(BigInteger, nullable=True)
    attributes_metadata = Column(JSONType, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    modified_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    namespace = relationship("Namespace", back_populates="documents")
    tags = relationship("DocumentTag", back_populates="document", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint("namespace_id", "checksum_sha256", name="uq_documents_namespace_checksum"),
        Index("idx_documents_created_at", "created_at"),
    )
