"""
Read-only snapshots of property listings and tenant profiles.

Both collections are owned by the listings/user directory; this service only
reads the attributes it needs for scoring and filtering.
"""

from datetime import datetime, UTC
from decimal import Decimal
from enum import Enum
from typing import Optional, Set

from bson.decimal128 import Decimal128
from pydantic import BaseModel, Field, field_validator


class LayoutType(str, Enum):
    """Apartment layout"""
    DECOMANDAT = "DECOMANDAT"            # Rooms open onto a hallway
    SEMIDECOMANDAT = "SEMIDECOMANDAT"    # Some rooms connect through others
    NEDECOMANDAT = "NEDECOMANDAT"        # Rooms connect through each other


class TenantType(str, Enum):
    """Tenant category a landlord may prefer"""
    STUDENT = "STUDENT"
    STUDENTS_COLIVING = "STUDENTS_COLIVING"
    PROFESSIONAL = "PROFESSIONAL"
    FAMILY = "FAMILY"
    FAMILY_WITH_KIDS = "FAMILY_WITH_KIDS"
    COUPLE = "COUPLE"

    @classmethod
    def _missing_(cls, value):
        # Accept display names such as "Family with Kids" or "Students (Coliving)"
        if isinstance(value, str):
            normalized = (
                value.strip().upper().replace("(", "").replace(")", "").replace(" WITH ", "_WITH_").replace(" ", "_")
            )
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class PropertySnapshot(BaseModel):
    """Property attributes used by the feed ranker"""

    id: str
    owner_id: str
    title: Optional[str] = None
    price: Optional[Decimal] = None
    surface: Optional[float] = None
    number_of_rooms: int = 1
    has_extra_bathroom: Optional[bool] = None
    layout_type: Optional[LayoutType] = None
    smoker_friendly: Optional[bool] = None
    pet_friendly: Optional[bool] = None
    preferred_tenants: Set[TenantType] = Field(default_factory=set)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("price", mode="before")
    @classmethod
    def _decimal128_price(cls, value):
        if isinstance(value, Decimal128):
            return value.to_decimal()
        return value

    @classmethod
    def from_document(cls, doc: dict) -> "PropertySnapshot":
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        return cls(**doc)


class TenantProfile(BaseModel):
    """Tenant lifestyle attributes used by the compatibility scorer"""

    id: str
    role: Optional[str] = None
    first_name: Optional[str] = None
    is_smoker: Optional[bool] = None
    has_pets: Optional[bool] = None
    min_rooms: Optional[int] = None
    wants_extra_bathroom: Optional[bool] = None
    tenant_type: Optional[TenantType] = None

    @classmethod
    def from_document(cls, doc: dict) -> "TenantProfile":
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        return cls(**doc)
