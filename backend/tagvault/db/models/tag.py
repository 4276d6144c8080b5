"""Tag model: a node in a per-namespace materialized-path tree."""
import uuid as uuid_pkg

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from tagvault.db.base import Base, utcnow


class Tag(Base):
    """Hierarchical tag addressed by its materialized path."""

    __tablename__ = "tags"

    id = Column(Uuid, primary_key=True, default=uuid_pkg.uuid4)
    namespace_id = Column(Uuid, ForeignKey("namespaces.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    path = Column(String(255), nullable=False)  # '/financial/reports/2023'
    parent_id = Column(Uuid, ForeignKey("tags.id", ondelete="CASCADE"), nullable=True)  # NULL for root tags
    color = Column(String(7), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    modified_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    namespace = relationship("Namespace", back_populates="tags")
    parent = relationship("Tag", remote_side=[id], backref="children")
    documents = relationship("DocumentTag", back_populates="tag", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint("namespace_id", "path", name="uq_tags_namespace_path"),
        Index("idx_tags_parent_id", "parent_id"),
    )
