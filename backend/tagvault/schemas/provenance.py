"""Extraction provenance for attributes.

One record describes the association itself, and one record per top-level
attribute field tells who or what set that field, when, and how confidently.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel, Field


class ExtractionMethod(str, Enum):
    """How an attribute value was produced."""

    MANUAL = "manual"
    AUTOMATIC = "automatic"


class ProvenanceRecord(BaseModel):
    """Who set a value, how and when."""

    method: ExtractionMethod
    actor: str
    timestamp: datetime
    source: str
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    @classmethod
    def stamp(
        cls,
        method: ExtractionMethod,
        actor: str,
        confidence: Optional[float] = None,
        timestamp: Optional[datetime] = None,
    ) -> "ProvenanceRecord":
        return cls(
            method=method,
            actor=actor,
            timestamp=timestamp or datetime.now(timezone.utc),
            source=method.value,
            confidence=confidence,
        )


class AttributesMetadata(BaseModel):
    """Provenance for an association and each of its attribute fields."""

    association: Optional[ProvenanceRecord] = None
    fields: Dict[str, ProvenanceRecord] = Field(default_factory=dict)

    @classmethod
    def build(
        cls,
        field_names: Iterable[str],
        method: ExtractionMethod,
        actor: str,
        confidence: Optional[float] = None,
        include_association: bool = True,
    ) -> "AttributesMetadata":
        """Stamp the association and every given field with the same record."""
        record = ProvenanceRecord.stamp(method, actor, confidence)
        return cls(
            association=record if include_association else None,
            fields={name: record.model_copy() for name in field_names},
        )

    @classmethod
    def from_stored(cls, raw: Optional[Dict[str, Any]]) -> Optional["AttributesMetadata"]:
        """Load metadata from its JSON column; empty or missing gives None."""
        if not raw:
            return None
        return cls.model_validate(raw)

    def merge(self, update: "AttributesMetadata") -> "AttributesMetadata":
        """Overlay an update: touched fields are replaced, the rest are kept.

        The association record is kept when present, otherwise taken from the update.
        """
        fields = dict(self.fields)
        fields.update(update.fields)
        return AttributesMetadata(association=self.association or update.association, fields=fields)

    def to_stored(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
