"""
Read-only lookups against the property, user and preferences directories.

Those collections are written by the listing and profile services; this
module never mutates them.
"""

import logging
from typing import List, Optional

from rentmatch.db.match_repository import to_object_id
from rentmatch.db.mongodb import mongodb
from rentmatch.models.preferences import Preferences
from rentmatch.models.property import PropertySnapshot, TenantProfile

logger = logging.getLogger(__name__)

# Roles that browse properties
TENANT_ROLES = ["USER", "TENANT"]


class DirectoryService:
    """Lookups for property, tenant profile and preference snapshots"""

    async def get_property(self, property_id: str) -> Optional[PropertySnapshot]:
        db = mongodb.get_database()
        doc = await db.properties.find_one({"_id": to_object_id(property_id) or property_id})
        return PropertySnapshot.from_document(doc) if doc else None

    async def get_user(self, user_id: str) -> Optional[TenantProfile]:
        db = mongodb.get_database()
        doc = await db.users.find_one({"_id": user_id})
        return TenantProfile.from_document(doc) if doc else None

    async def list_properties(self) -> List[PropertySnapshot]:
        db = mongodb.get_database()
        return [PropertySnapshot.from_document(doc) async for doc in db.properties.find({})]

    async def list_properties_by_owner(self, owner_id: str) -> List[PropertySnapshot]:
        db = mongodb.get_database()
        cursor = db.properties.find({"owner_id": owner_id}).sort("created_at", -1)
        return [PropertySnapshot.from_document(doc) async for doc in cursor]

    async def list_tenants(self) -> List[TenantProfile]:
        db = mongodb.get_database()
        cursor = db.users.find({"role": {"$in": TENANT_ROLES}})
        return [TenantProfile.from_document(doc) async for doc in cursor]

    async def get_preferences(self, user_id: str) -> Optional[Preferences]:
        db = mongodb.get_database()
        doc = await db.preferences.find_one({"user_id": user_id})
        if not doc:
            logger.debug("No preferences for user %s, feed is unfiltered", user_id)
            return None
        return Preferences.from_document(doc)
