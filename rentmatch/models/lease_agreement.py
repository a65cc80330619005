"""
Model for the rental terms attached to a match
"""

from datetime import date, datetime, time, UTC
from decimal import Decimal
from typing import Optional

from bson.decimal128 import Decimal128
from pydantic import BaseModel, Field

from rentmatch.models.match import Match
from rentmatch.models.status_enums import Currency, LeaseStatus


class LeaseAgreement(BaseModel):
    """
    Terms of a rental agreement between a landlord and a tenant.

    Created when the landlord sends a rent proposal. The monthly price may
    differ from the listed property price.
    """

    id: Optional[str] = None
    match_id: str
    property_id: str

    monthly_price: Decimal = Field(..., max_digits=12, decimal_places=2)
    currency: Currency = Currency.EUR
    start_date: date
    # None for rolling leases
    end_date: Optional[date] = None

    status: LeaseStatus = LeaseStatus.PENDING

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_document(self) -> dict:
        """BSON has no decimal or date types, store Decimal128 and midnight datetimes"""
        doc = self.model_dump(exclude={"id"})
        doc["monthly_price"] = Decimal128(self.monthly_price)
        doc["currency"] = self.currency.value
        doc["status"] = self.status.value
        doc["start_date"] = _to_datetime(self.start_date)
        doc["end_date"] = _to_datetime(self.end_date)
        return doc

    @classmethod
    def from_document(cls, doc: dict) -> "LeaseAgreement":
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        if isinstance(doc.get("monthly_price"), Decimal128):
            doc["monthly_price"] = doc["monthly_price"].to_decimal()
        for key in ("start_date", "end_date"):
            if isinstance(doc.get(key), datetime):
                doc[key] = doc[key].date()
        return cls(**doc)


def _to_datetime(value: Optional[date]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.combine(value, time.min, tzinfo=UTC)


class LeaseWorkflowResult(BaseModel):
    """Match and lease as they stand after a lease transition"""

    match: Match
    lease: LeaseAgreement
    # False when the call found the transition already applied
    changed: bool = True
