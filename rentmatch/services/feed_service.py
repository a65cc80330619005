"""
Feed ranking for both sides of the marketplace.

A feed is built in four passes:

1. Exclusion: candidates already liked by the viewer or engaged in a match,
   properties owned by the viewer and properties that are already rented.
2. Preference filter: the tenant's optional search constraints.
3. Scoring: attribute compatibility plus the accumulated interaction score
   of the (tenant, property) match.
4. Ranking: candidates under the visibility threshold are dropped, the rest
   are sorted by total score and the lower half is lightly shuffled so a
   single unlucky ranking does not bury a candidate for good.
"""

import logging
import random
from typing import Dict, List, Optional, Sequence, TypeVar

from rentmatch.core.config import settings
from rentmatch.db.lease_repository import LeaseRepository
from rentmatch.db.match_repository import MatchRepository
from rentmatch.exceptions import AuthorizationError, NotFoundError
from rentmatch.models.feed import FeedItem, PropertyFeedItem, TenantFeedItem
from rentmatch.models.match import Match
from rentmatch.models.status_enums import ActorRole, MatchStatus
from rentmatch.services.compatibility_scorer import (
    DEFAULT_WEIGHTS,
    CompatibilityWeights,
    calculate_compatibility,
)
from rentmatch.services.directory_service import DirectoryService

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=FeedItem)


class FeedRanker:
    """Threshold, ordering and anti-stagnation shuffle over scored candidates"""

    def __init__(
        self,
        visibility_threshold: Optional[float] = None,
        shuffle_min_size: Optional[int] = None,
        shuffle_start: Optional[int] = None,
        shuffle_step: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        self.visibility_threshold = (
            settings.FEED_VISIBILITY_THRESHOLD if visibility_threshold is None else visibility_threshold
        )
        self.shuffle_min_size = settings.FEED_SHUFFLE_MIN_SIZE if shuffle_min_size is None else shuffle_min_size
        self.shuffle_start = settings.FEED_SHUFFLE_START if shuffle_start is None else shuffle_start
        self.shuffle_step = settings.FEED_SHUFFLE_STEP if shuffle_step is None else shuffle_step
        self.rng = rng or random.Random(settings.FEED_SHUFFLE_SEED)

    def rank(self, items: Sequence[T]) -> List[T]:
        visible = [item for item in items if item.total_score >= self.visibility_threshold]
        dropped = len(items) - len(visible)
        if dropped:
            logger.debug("Dropped %s candidates under visibility threshold %s", dropped, self.visibility_threshold)

        visible.sort(key=_ordering_key)
        return self.shuffle(visible)

    def shuffle(self, items: List[T]) -> List[T]:
        """
        Swap every ``step``-th item of the upper half, starting at ``start``,
        with a random item of the lower half. The first ``start`` items are
        never moved.
        """
        if len(items) <= self.shuffle_min_size:
            return items

        mid = len(items) // 2
        for i in range(self.shuffle_start, mid, self.shuffle_step):
            j = self.rng.randrange(mid, len(items))
            items[i], items[j] = items[j], items[i]
        return items


def _ordering_key(item: FeedItem):
    # Descending score, then ids ascending for a deterministic order
    return (-item.total_score, item.candidate_id, getattr(item, "property_id", ""))


class FeedService:
    """Builds tenant and landlord feeds from directory snapshots and match history"""

    def __init__(
        self,
        matches: Optional[MatchRepository] = None,
        leases: Optional[LeaseRepository] = None,
        directory: Optional[DirectoryService] = None,
        ranker: Optional[FeedRanker] = None,
        weights: CompatibilityWeights = DEFAULT_WEIGHTS,
    ):
        self.matches = matches or MatchRepository()
        self.leases = leases or LeaseRepository()
        self.directory = directory or DirectoryService()
        self.ranker = ranker or FeedRanker()
        self.weights = weights

    async def get_feed(self, viewer_id: str, viewer_role: ActorRole, property_id: Optional[str] = None):
        if viewer_role == ActorRole.TENANT:
            return await self.get_tenant_feed(viewer_id)
        return await self.get_landlord_feed(viewer_id, property_id)

    async def get_tenant_feed(self, tenant_id: str) -> List[PropertyFeedItem]:
        """Properties ranked for a tenant"""
        tenant = await self.directory.get_user(tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant", tenant_id)

        history: Dict[str, Match] = {m.property_id: m for m in await self.matches.list_by_tenant(tenant_id)}
        hidden = {
            property_id
            for property_id, match in history.items()
            if match.is_engaged or match.status == MatchStatus.TENANT_LIKED
        }
        rented = await self.leases.active_property_ids()
        preferences = await self.directory.get_preferences(tenant_id)

        items: List[PropertyFeedItem] = []
        for prop in await self.directory.list_properties():
            if prop.owner_id == tenant_id or prop.id in hidden or prop.id in rented:
                continue
            if preferences is not None and not preferences.matches(prop):
                continue

            compatibility = calculate_compatibility(tenant, prop, self.weights)
            history_score = history[prop.id].score if prop.id in history else 0.0
            items.append(
                PropertyFeedItem(
                    candidate_id=prop.id,
                    property=prop,
                    compatibility_score=compatibility,
                    history_score=history_score,
                    total_score=compatibility + history_score,
                )
            )

        feed = self.ranker.rank(items)
        logger.info("Tenant feed for %s: %s of %s candidates", tenant_id, len(feed), len(items))
        return feed

    async def get_landlord_feed(self, landlord_id: str, property_id: Optional[str] = None) -> List[TenantFeedItem]:
        """Tenants ranked for one of the landlord's properties, or for all of them"""
        if property_id is not None:
            prop = await self.directory.get_property(property_id)
            if prop is None:
                raise NotFoundError("Property", property_id)
            if prop.owner_id != landlord_id:
                raise AuthorizationError("Not your property")
            properties = [prop]
        else:
            properties = await self.directory.list_properties_by_owner(landlord_id)

        if not properties:
            return []

        rented = await self.leases.active_property_ids()
        tenants = [t for t in await self.directory.list_tenants() if t.id != landlord_id]

        items: List[TenantFeedItem] = []
        for prop in properties:
            if prop.id in rented:
                continue

            history: Dict[str, Match] = {m.tenant_id: m for m in await self.matches.list_by_property(prop.id)}
            for tenant in tenants:
                match = history.get(tenant.id)
                if match is not None and (match.is_engaged or match.status == MatchStatus.LANDLORD_LIKED):
                    continue

                compatibility = calculate_compatibility(tenant, prop, self.weights)
                history_score = match.score if match is not None else 0.0
                items.append(
                    TenantFeedItem(
                        candidate_id=tenant.id,
                        tenant=tenant,
                        property_id=prop.id,
                        match_id=match.id if match is not None else None,
                        compatibility_score=compatibility,
                        history_score=history_score,
                        total_score=compatibility + history_score,
                    )
                )

        feed = self.ranker.rank(items)
        logger.info("Landlord feed for %s: %s of %s candidates", landlord_id, len(feed), len(items))
        return feed
