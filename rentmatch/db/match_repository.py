"""
Persistence for match records.

Every update is a compare-and-set on the document's ``version`` so two
concurrent read-modify-write cycles on the same match cannot both succeed.
"""

import logging
from datetime import datetime, UTC
from typing import Iterable, List, Optional

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from rentmatch.db.mongodb import mongodb
from rentmatch.exceptions import ConcurrentModificationError
from rentmatch.models.match import Match
from rentmatch.models.status_enums import MatchStatus

logger = logging.getLogger(__name__)


def to_object_id(value: str) -> Optional[ObjectId]:
    """Parse an API-facing id, None when it cannot be a Mongo id"""
    if isinstance(value, ObjectId):
        return value
    if value is None or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


class MatchRepository:
    """MongoDB access for the ``matches`` collection"""

    @property
    def collection(self):
        return mongodb.get_database().matches

    async def get(self, match_id: str, session=None) -> Optional[Match]:
        object_id = to_object_id(match_id)
        if object_id is None:
            return None
        doc = await self.collection.find_one({"_id": object_id}, session=session)
        return Match.from_document(doc) if doc else None

    async def find_by_tenant_and_property(self, tenant_id: str, property_id: str, session=None) -> Optional[Match]:
        doc = await self.collection.find_one({"tenant_id": tenant_id, "property_id": property_id}, session=session)
        return Match.from_document(doc) if doc else None

    async def insert(self, match: Match, session=None) -> Match:
        """Insert a new match, losing a creation race raises ConcurrentModificationError"""
        now = datetime.now(UTC)
        created = match.model_copy(update={"created_at": now, "updated_at": now, "version": 1})
        try:
            result = await self.collection.insert_one(created.to_document(), session=session)
        except DuplicateKeyError as e:
            logger.warning(
                "Match for tenant %s and property %s was created concurrently", match.tenant_id, match.property_id
            )
            raise ConcurrentModificationError("Match was created concurrently, retry the request") from e
        return created.model_copy(update={"id": str(result.inserted_id)})

    async def save(self, match: Match, session=None) -> Match:
        """Write back a loaded match if nobody else changed it in between"""
        updated = match.model_copy(update={"updated_at": datetime.now(UTC), "version": match.version + 1})
        doc = updated.to_document()
        doc.pop("created_at", None)

        result = await self.collection.update_one(
            {"_id": ObjectId(match.id), "version": match.version},
            {"$set": doc},
            session=session,
        )
        if result.matched_count == 0:
            logger.warning("Match %s changed since version %s was read", match.id, match.version)
            raise ConcurrentModificationError(
                f"Match {match.id} was modified concurrently, retry the request",
                current_status=match.status,
            )
        return updated

    async def touch(self, match_id: str) -> bool:
        """Refresh updated_at without changing state"""
        object_id = to_object_id(match_id)
        if object_id is None:
            return False
        result = await self.collection.update_one(
            {"_id": object_id},
            {"$set": {"updated_at": datetime.now(UTC)}, "$inc": {"version": 1}},
        )
        return result.matched_count > 0

    async def list_by_tenant(self, tenant_id: str) -> List[Match]:
        return await self._find({"tenant_id": tenant_id})

    async def list_by_property(self, property_id: str) -> List[Match]:
        return await self._find({"property_id": property_id})

    async def list_by_landlord(
        self, landlord_id: str, statuses: Optional[Iterable[MatchStatus]] = None
    ) -> List[Match]:
        query = {"landlord_id": landlord_id}
        if statuses is not None:
            query["status"] = {"$in": [s.value for s in statuses]}
        return await self._find(query, sort_by_recent=True)

    async def list_for_user(self, user_id: str, field: str, statuses: Iterable[MatchStatus]) -> List[Match]:
        """Matches where ``field`` (tenant_id or landlord_id) is the user, most recent first"""
        query = {field: user_id, "status": {"$in": [s.value for s in statuses]}}
        return await self._find(query, sort_by_recent=True)

    async def _find(self, query: dict, sort_by_recent: bool = False) -> List[Match]:
        cursor = self.collection.find(query)
        if sort_by_recent:
            cursor = cursor.sort("updated_at", DESCENDING)
        return [Match.from_document(doc) async for doc in cursor]
