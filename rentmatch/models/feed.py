"""
Feed response models
"""

from typing import Optional

from pydantic import BaseModel

from rentmatch.models.property import PropertySnapshot, TenantProfile


class FeedItem(BaseModel):
    """A ranked candidate with the parts of its score"""

    candidate_id: str
    compatibility_score: float
    history_score: float = 0.0
    total_score: float


class PropertyFeedItem(FeedItem):
    """Property shown in a tenant's feed"""

    property: PropertySnapshot


class TenantFeedItem(FeedItem):
    """Tenant shown in a landlord's feed for one of their properties"""

    tenant: TenantProfile
    property_id: str
    match_id: Optional[str] = None
