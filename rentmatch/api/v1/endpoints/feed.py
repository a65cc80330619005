from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query

from rentmatch.api.dependencies import get_current_user
from rentmatch.models.feed import PropertyFeedItem, TenantFeedItem
from rentmatch.models.status_enums import ActorRole
from rentmatch.models.token import TokenData
from rentmatch.services.feed_service import FeedService

router = APIRouter()


def get_feed_service() -> FeedService:
    """Dependency to get FeedService"""
    return FeedService()


@router.get("/", response_model=Union[List[PropertyFeedItem], List[TenantFeedItem]])
async def get_feed(
    role: ActorRole = Query(ActorRole.TENANT, description="Side the caller is browsing as"),
    property_id: Optional[str] = Query(None, description="Landlord feed for a single property"),
    current_user: TokenData = Depends(get_current_user),
    service: FeedService = Depends(get_feed_service),
):
    """Ranked properties for a tenant, or ranked tenants for a landlord"""
    return await service.get_feed(current_user.user_id, role, property_id)
