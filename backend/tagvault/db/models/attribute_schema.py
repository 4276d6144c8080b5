"""Versioned attribute schema model."""
from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid

from tagvault.db.base import Base, JSONType, utcnow

GLOBAL_SCOPE = "global"


class AttributeSchema(Base):
    """Immutable JSON Schema version, owned by a tag or by the namespace (tag_id NULL)."""

    __tablename__ = "attribute_schemas"

    id = Column(Integer, primary_key=True, autoincrement=True)
    namespace_id = Column(Uuid, ForeignKey("namespaces.id", ondelete="CASCADE"), nullable=False)
    tag_id = Column(Uuid, ForeignKey("tags.id", ondelete="CASCADE"), nullable=True, index=True)
    # Tag id hex or 'global'; NULL tag_id can't take part in a unique constraint
    scope_key = Column(String(64), nullable=False)
    version = Column(BigInteger, nullable=False)
    json_schema = Column(JSONType, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("namespace_id", "scope_key", "version", name="uq_attribute_schemas_scope_version"),
    )
