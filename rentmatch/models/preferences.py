from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional, Set

from bson.decimal128 import Decimal128
from pydantic import BaseModel, Field, field_validator

from rentmatch.models.property import LayoutType, PropertySnapshot
from rentmatch.utils.geo import haversine_km


class Preferences(BaseModel):
    """Optional search constraints a tenant attaches to their feed"""

    id: Optional[str] = None
    user_id: str

    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    min_surface: Optional[float] = None
    max_surface: Optional[float] = None
    min_rooms: Optional[int] = Field(None, ge=1)
    max_rooms: Optional[int] = Field(None, ge=1)
    layout_types: Set[LayoutType] = Field(default_factory=set)

    smoker_friendly: Optional[bool] = None
    pet_friendly: Optional[bool] = None

    # Geo radius around a fixed point
    search_latitude: Optional[float] = None
    search_longitude: Optional[float] = None
    search_radius_km: Optional[float] = Field(None, gt=0)

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("min_price", "max_price", mode="before")
    @classmethod
    def _decimal128_prices(cls, value):
        if isinstance(value, Decimal128):
            return value.to_decimal()
        return value

    @property
    def has_search_area(self) -> bool:
        return (
            self.search_latitude is not None
            and self.search_longitude is not None
            and self.search_radius_km is not None
        )

    def matches(self, prop: PropertySnapshot) -> bool:
        """Check if a property passes every declared constraint"""
        # Price range
        if prop.price is not None:
            if self.min_price is not None and prop.price < self.min_price:
                return False
            if self.max_price is not None and prop.price > self.max_price:
                return False

        # Surface
        if prop.surface is not None:
            if self.min_surface is not None and prop.surface < self.min_surface:
                return False
            if self.max_surface is not None and prop.surface > self.max_surface:
                return False

        # Rooms
        if self.min_rooms is not None and prop.number_of_rooms < self.min_rooms:
            return False
        if self.max_rooms is not None and prop.number_of_rooms > self.max_rooms:
            return False

        # Layout, only when the listing declares one
        if self.layout_types and prop.layout_type is not None:
            if prop.layout_type not in self.layout_types:
                return False

        # Lifestyle flags: asking for True requires the property to allow it
        if self.pet_friendly is True and prop.pet_friendly is not True:
            return False
        if self.smoker_friendly is True and prop.smoker_friendly is not True:
            return False

        # Radius
        if self.has_search_area:
            if prop.latitude is None or prop.longitude is None:
                return False
            distance = haversine_km(self.search_latitude, self.search_longitude, prop.latitude, prop.longitude)
            if distance > self.search_radius_km:
                return False

        return True

    @classmethod
    def from_document(cls, doc: dict) -> "Preferences":
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        return cls(**doc)
