"""
Match state machine: swipes and passes from both sides of the marketplace.

Every interaction adds a score delta to the (tenant, property) match and
moves its status:

    tenant like      LANDLORD_LIKED -> MATCHED, otherwise -> TENANT_LIKED
    tenant pass      -> TENANT_DECLINED
    landlord like    TENANT_LIKED -> MATCHED, otherwise -> LANDLORD_LIKED
    landlord pass    -> LANDLORD_DECLINED

A like on a match that is already MATCHED or further along the rental
workflow keeps its status; only the score moves.
"""

import logging
from typing import List, Optional

from rentmatch.core.config import settings
from rentmatch.db.match_repository import MatchRepository
from rentmatch.exceptions import (
    AuthorizationError,
    ConcurrentModificationError,
    InvalidRequestError,
    NotFoundError,
)
from rentmatch.models.match import Match
from rentmatch.models.property import PropertySnapshot
from rentmatch.models.status_enums import ActorRole, MatchStatus
from rentmatch.services.directory_service import DirectoryService

logger = logging.getLogger(__name__)


def next_match_status(current: Optional[MatchStatus], role: ActorRole, liked: bool) -> MatchStatus:
    """Status after an interaction, ``current`` is None when no match exists yet"""
    # A pass declines from any status, OFFER_PENDING and RENTED included
    if not liked:
        return MatchStatus.TENANT_DECLINED if role == ActorRole.TENANT else MatchStatus.LANDLORD_DECLINED

    if current is not None and current not in (
        MatchStatus.TENANT_LIKED,
        MatchStatus.LANDLORD_LIKED,
        MatchStatus.TENANT_DECLINED,
        MatchStatus.LANDLORD_DECLINED,
    ):
        return current

    if role == ActorRole.TENANT:
        return MatchStatus.MATCHED if current == MatchStatus.LANDLORD_LIKED else MatchStatus.TENANT_LIKED
    return MatchStatus.MATCHED if current == MatchStatus.TENANT_LIKED else MatchStatus.LANDLORD_LIKED


class MatchService:
    """Records swipes and passes and answers match queries"""

    def __init__(
        self,
        matches: Optional[MatchRepository] = None,
        directory: Optional[DirectoryService] = None,
        like_score: Optional[float] = None,
        pass_score: Optional[float] = None,
        max_retries: Optional[int] = None,
    ):
        self.matches = matches or MatchRepository()
        self.directory = directory or DirectoryService()
        self.like_score = settings.LIKE_SCORE if like_score is None else like_score
        self.pass_score = settings.PASS_SCORE if pass_score is None else pass_score
        self.max_retries = max_retries or settings.MATCH_WRITE_MAX_RETRIES

    # ==================== SWIPES ====================

    async def swipe(
        self,
        viewer_id: str,
        viewer_role: ActorRole,
        property_id: str,
        liked: bool,
        counterparty_id: Optional[str] = None,
    ) -> Match:
        """Like or pass from either side"""
        if viewer_role == ActorRole.TENANT:
            prop = await self._get_property(property_id)
            if counterparty_id is not None and counterparty_id != prop.owner_id:
                raise InvalidRequestError("Counterparty is not the landlord of this property")
            return await self.record_interaction(ActorRole.TENANT, viewer_id, prop, liked)

        if not counterparty_id:
            raise InvalidRequestError("A landlord swipe needs the tenant it is about")
        prop = await self._get_owned_property(viewer_id, property_id)
        return await self.record_interaction(ActorRole.LANDLORD, counterparty_id, prop, liked)

    async def swipe_by_tenant(self, tenant_id: str, property_id: str) -> Match:
        """Tenant swipes right"""
        return await self.swipe(tenant_id, ActorRole.TENANT, property_id, True)

    async def pass_by_tenant(self, tenant_id: str, property_id: str) -> Match:
        """Tenant swipes left"""
        return await self.swipe(tenant_id, ActorRole.TENANT, property_id, False)

    async def invite_tenant(self, landlord_id: str, tenant_id: str, property_id: str) -> Match:
        """Landlord swipes right on a tenant for one of their properties"""
        return await self.swipe(landlord_id, ActorRole.LANDLORD, property_id, True, counterparty_id=tenant_id)

    async def pass_by_landlord(self, landlord_id: str, tenant_id: str, property_id: str) -> Match:
        """Landlord swipes left, also used to decline a pending like"""
        return await self.swipe(landlord_id, ActorRole.LANDLORD, property_id, False, counterparty_id=tenant_id)

    # ==================== INTERACTIONS ====================

    async def record_interaction(
        self, actor_role: ActorRole, tenant_id: str, prop: PropertySnapshot, liked: bool
    ) -> Match:
        """Apply one interaction to the (tenant, property) match, creating it on first contact"""
        tenant = await self.directory.get_user(tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant", tenant_id)
        if tenant.id == prop.owner_id:
            raise InvalidRequestError("Self-interaction is not allowed")

        delta = self.like_score if liked else self.pass_score

        for attempt in range(1, self.max_retries + 1):
            existing = await self.matches.find_by_tenant_and_property(tenant.id, prop.id)
            try:
                if existing is None:
                    match = await self.matches.insert(
                        Match(
                            tenant_id=tenant.id,
                            landlord_id=prop.owner_id,
                            property_id=prop.id,
                            status=next_match_status(None, actor_role, liked),
                            score=delta,
                        )
                    )
                else:
                    match = await self.matches.save(
                        existing.model_copy(
                            update={
                                "status": next_match_status(existing.status, actor_role, liked),
                                "score": existing.score + delta,
                            }
                        )
                    )
            except ConcurrentModificationError:
                if attempt == self.max_retries:
                    raise
                logger.warning(
                    "Retrying %s interaction on tenant %s / property %s (attempt %s)",
                    actor_role.value,
                    tenant.id,
                    prop.id,
                    attempt,
                )
                continue

            logger.info(
                "%s %s: tenant=%s property=%s status=%s score=%s",
                actor_role.value,
                "like" if liked else "pass",
                tenant.id,
                prop.id,
                match.status.value,
                match.score,
            )
            return match

        raise ConcurrentModificationError("Match could not be updated")

    # ==================== QUERIES ====================

    async def get_match(self, match_id: str, user_id: str) -> Match:
        match = await self.matches.get(match_id)
        if match is None:
            raise NotFoundError("Match", match_id)
        if not match.is_party(user_id):
            raise AuthorizationError("You are not part of this match")
        return match

    async def get_pending_likes_for_landlord(self, landlord_id: str) -> List[Match]:
        """Tenants who liked one of the landlord's properties and await an answer"""
        return await self.matches.list_by_landlord(landlord_id, [MatchStatus.TENANT_LIKED])

    async def get_confirmed_matches(self, landlord_id: str) -> List[Match]:
        return await self.matches.list_by_landlord(landlord_id, [MatchStatus.MATCHED])

    # ==================== HELPERS ====================

    async def _get_property(self, property_id: str) -> PropertySnapshot:
        prop = await self.directory.get_property(property_id)
        if prop is None:
            raise NotFoundError("Property", property_id)
        return prop

    async def _get_owned_property(self, landlord_id: str, property_id: str) -> PropertySnapshot:
        prop = await self._get_property(property_id)
        if prop.owner_id != landlord_id:
            logger.warning("Landlord %s acted on property %s owned by someone else", landlord_id, property_id)
            raise AuthorizationError("Not your property")
        return prop
