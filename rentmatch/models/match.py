"""
Model for the per-(tenant, property) match record
"""

from datetime import datetime, UTC
from typing import Optional

from pydantic import BaseModel, Field

from rentmatch.models.status_enums import ENGAGED_STATUSES, MatchStatus


class Match(BaseModel):
    """Tracks mutual interest and rental workflow state for one tenant and one property"""

    id: Optional[str] = None
    tenant_id: str
    landlord_id: str
    property_id: str

    status: MatchStatus
    # Accumulated interaction history, never reset
    score: float = 0.0
    viewing_date: Optional[datetime] = None

    # Optimistic concurrency counter, bumped on every write
    version: int = 0

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def is_party(self, user_id: str) -> bool:
        return user_id in (self.tenant_id, self.landlord_id)

    @property
    def is_engaged(self) -> bool:
        """MATCHED or further along the rental workflow"""
        return self.status in ENGAGED_STATUSES

    def to_document(self) -> dict:
        doc = self.model_dump(exclude={"id"})
        doc["status"] = self.status.value
        return doc

    @classmethod
    def from_document(cls, doc: dict) -> "Match":
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        return cls(**doc)
