"""Namespace model, the isolation boundary for tags and documents."""
import uuid as uuid_pkg

from sqlalchemy import Column, DateTime, String, Uuid
from sqlalchemy.orm import relationship

from tagvault.db.base import Base, utcnow


class Namespace(Base):
    """Namespace owning its own tags, schemas and documents."""

    __tablename__ = "namespaces"

    id = Column(Uuid, primary_key=True, default=uuid_pkg.uuid4)
    name = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    modified_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships (CASCADE delete for data isolation)
    documents = relationship("Document", back_populates="namespace", cascade="all, delete-orphan", passive_deletes=True)
    tags = relationship("Tag", back_populates="namespace", cascade="all, delete-orphan", passive_deletes=True)
