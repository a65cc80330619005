"""
Persistence for lease agreements.
"""

import logging
from datetime import datetime, UTC
from typing import Optional, Set

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from rentmatch.db.match_repository import to_object_id
from rentmatch.db.mongodb import mongodb
from rentmatch.exceptions import ConcurrentModificationError, ConflictError
from rentmatch.models.lease_agreement import LeaseAgreement
from rentmatch.models.status_enums import LeaseStatus

logger = logging.getLogger(__name__)


class LeaseRepository:
    """MongoDB access for the ``lease_agreements`` collection"""

    @property
    def collection(self):
        return mongodb.get_database().lease_agreements

    async def get(self, lease_id: str, session=None) -> Optional[LeaseAgreement]:
        object_id = to_object_id(lease_id)
        if object_id is None:
            return None
        doc = await self.collection.find_one({"_id": object_id}, session=session)
        return LeaseAgreement.from_document(doc) if doc else None

    async def find_pending_for_match(self, match_id: str, session=None) -> Optional[LeaseAgreement]:
        doc = await self.collection.find_one(
            {"match_id": match_id, "status": LeaseStatus.PENDING.value}, session=session
        )
        return LeaseAgreement.from_document(doc) if doc else None

    async def insert(self, lease: LeaseAgreement, session=None) -> LeaseAgreement:
        """Insert a lease, the partial unique index rejects a second pending one"""
        try:
            result = await self.collection.insert_one(lease.to_document(), session=session)
        except DuplicateKeyError as e:
            logger.warning("Rejected second pending lease for match %s", lease.match_id)
            raise ConflictError(
                "A rent proposal is already pending for this match.",
                current_status=LeaseStatus.PENDING,
            ) from e
        return lease.model_copy(update={"id": str(result.inserted_id)})

    async def update_status(
        self, lease: LeaseAgreement, new_status: LeaseStatus, session=None
    ) -> LeaseAgreement:
        """Move a lease out of the status it was read in"""
        now = datetime.now(UTC)
        result = await self.collection.update_one(
            {"_id": ObjectId(lease.id), "status": lease.status.value},
            {"$set": {"status": new_status.value, "updated_at": now}},
            session=session,
        )
        if result.matched_count == 0:
            logger.warning("Lease %s left status %s before the update", lease.id, lease.status.value)
            raise ConcurrentModificationError(
                f"Lease {lease.id} was modified concurrently, retry the request",
                current_status=lease.status,
            )
        return lease.model_copy(update={"status": new_status, "updated_at": now})

    async def active_property_ids(self) -> Set[str]:
        """Properties that already have an active lease"""
        property_ids = await self.collection.distinct("property_id", {"status": LeaseStatus.ACTIVE.value})
        return {str(pid) for pid in property_ids}
