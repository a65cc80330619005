"""
Pytest configuration and fixtures for testing.

The services talk to MongoDB through small repository classes; the fixtures
below replace them with in-memory doubles that honour the same contracts
(unique (tenant, property) pair, version compare-and-set, one pending lease
per match) so state machine tests run without a database.
"""

import itertools
import random
from contextlib import asynccontextmanager
from datetime import datetime, UTC
from decimal import Decimal
from typing import Dict, List, Optional

import pytest

from rentmatch.core.security import create_access_token
from rentmatch.exceptions import ConcurrentModificationError, ConflictError
from rentmatch.models.lease_agreement import LeaseAgreement
from rentmatch.models.match import Match
from rentmatch.models.preferences import Preferences
from rentmatch.models.property import PropertySnapshot, TenantProfile
from rentmatch.models.status_enums import LeaseStatus
from rentmatch.models.workflow_event import WorkflowEvent
from rentmatch.services.feed_service import FeedRanker, FeedService
from rentmatch.services.lease_activation_service import LeaseActivationService
from rentmatch.services.match_service import MatchService
from rentmatch.services.notification_service import WorkflowEventHandler, WorkflowEventPublisher
from rentmatch.services.rental_workflow_service import RentalWorkflowService

TENANT_ID = "tenant-1"
LANDLORD_ID = "landlord-1"
PROPERTY_ID = "prop-1"


class InMemoryMatchRepository:
    """Match repository double"""

    def __init__(self):
        self.docs: Dict[str, Match] = {}
        self._ids = itertools.count(1)

    async def get(self, match_id: str, session=None) -> Optional[Match]:
        return self.docs.get(match_id)

    def _find_pair(self, tenant_id: str, property_id: str) -> Optional[Match]:
        for match in self.docs.values():
            if match.tenant_id == tenant_id and match.property_id == property_id:
                return match
        return None

    async def find_by_tenant_and_property(self, tenant_id: str, property_id: str, session=None) -> Optional[Match]:
        return self._find_pair(tenant_id, property_id)

    async def insert(self, match: Match, session=None) -> Match:
        if self._find_pair(match.tenant_id, match.property_id) is not None:
            raise ConcurrentModificationError("Match was created concurrently, retry the request")
        now = datetime.now(UTC)
        created = match.model_copy(
            update={"id": f"match-{next(self._ids)}", "version": 1, "created_at": now, "updated_at": now}
        )
        self.docs[created.id] = created
        return created

    async def save(self, match: Match, session=None) -> Match:
        stored = self.docs.get(match.id)
        if stored is None or stored.version != match.version:
            raise ConcurrentModificationError(
                f"Match {match.id} was modified concurrently", current_status=match.status
            )
        updated = match.model_copy(update={"version": match.version + 1, "updated_at": datetime.now(UTC)})
        self.docs[match.id] = updated
        return updated

    async def touch(self, match_id: str) -> bool:
        stored = self.docs.get(match_id)
        if stored is None:
            return False
        self.docs[match_id] = stored.model_copy(
            update={"version": stored.version + 1, "updated_at": datetime.now(UTC)}
        )
        return True

    async def list_by_tenant(self, tenant_id: str) -> List[Match]:
        return [m for m in self.docs.values() if m.tenant_id == tenant_id]

    async def list_by_property(self, property_id: str) -> List[Match]:
        return [m for m in self.docs.values() if m.property_id == property_id]

    async def list_by_landlord(self, landlord_id: str, statuses=None) -> List[Match]:
        found = [
            m for m in self.docs.values() if m.landlord_id == landlord_id and (statuses is None or m.status in statuses)
        ]
        return sorted(found, key=lambda m: m.updated_at, reverse=True)

    async def list_for_user(self, user_id: str, field: str, statuses) -> List[Match]:
        found = [m for m in self.docs.values() if getattr(m, field) == user_id and m.status in statuses]
        return sorted(found, key=lambda m: m.updated_at, reverse=True)


class InMemoryLeaseRepository:
    """Lease repository double"""

    def __init__(self):
        self.docs: Dict[str, LeaseAgreement] = {}
        self._ids = itertools.count(1)

    async def get(self, lease_id: str, session=None) -> Optional[LeaseAgreement]:
        return self.docs.get(lease_id)

    async def find_pending_for_match(self, match_id: str, session=None) -> Optional[LeaseAgreement]:
        for lease in self.docs.values():
            if lease.match_id == match_id and lease.status == LeaseStatus.PENDING:
                return lease
        return None

    async def insert(self, lease: LeaseAgreement, session=None) -> LeaseAgreement:
        if await self.find_pending_for_match(lease.match_id) is not None:
            raise ConflictError("A rent proposal is already pending for this match.")
        created = lease.model_copy(update={"id": f"lease-{next(self._ids)}"})
        self.docs[created.id] = created
        return created

    async def update_status(self, lease: LeaseAgreement, new_status: LeaseStatus, session=None) -> LeaseAgreement:
        stored = self.docs.get(lease.id)
        if stored is None or stored.status != lease.status:
            raise ConcurrentModificationError(f"Lease {lease.id} was modified concurrently")
        updated = stored.model_copy(update={"status": new_status, "updated_at": datetime.now(UTC)})
        self.docs[lease.id] = updated
        return updated

    async def active_property_ids(self):
        return {lease.property_id for lease in self.docs.values() if lease.status == LeaseStatus.ACTIVE}


class InMemoryDirectory:
    """Property, tenant and preference directory double"""

    def __init__(self):
        self.properties: Dict[str, PropertySnapshot] = {}
        self.users: Dict[str, TenantProfile] = {}
        self.preferences: Dict[str, Preferences] = {}

    def add_property(self, property_id: str, owner_id: str = LANDLORD_ID, **attrs) -> PropertySnapshot:
        prop = PropertySnapshot(id=property_id, owner_id=owner_id, **attrs)
        self.properties[property_id] = prop
        return prop

    def add_user(self, user_id: str, role: str = "TENANT", **attrs) -> TenantProfile:
        user = TenantProfile(id=user_id, role=role, **attrs)
        self.users[user_id] = user
        return user

    async def get_property(self, property_id: str) -> Optional[PropertySnapshot]:
        return self.properties.get(property_id)

    async def get_user(self, user_id: str) -> Optional[TenantProfile]:
        return self.users.get(user_id)

    async def list_properties(self) -> List[PropertySnapshot]:
        return list(self.properties.values())

    async def list_properties_by_owner(self, owner_id: str) -> List[PropertySnapshot]:
        return [p for p in self.properties.values() if p.owner_id == owner_id]

    async def list_tenants(self) -> List[TenantProfile]:
        return [u for u in self.users.values() if u.role in ("USER", "TENANT")]

    async def get_preferences(self, user_id: str) -> Optional[Preferences]:
        return self.preferences.get(user_id)


class RecordingEventHandler(WorkflowEventHandler):
    """Keeps published events for assertions"""

    def __init__(self):
        self.events: List[WorkflowEvent] = []

    async def publish(self, event: WorkflowEvent) -> None:
        self.events.append(event)


class NoTransactionDB:
    """Stands in for the Mongo wrapper's transaction() in service tests"""

    @asynccontextmanager
    async def transaction(self):
        yield None


@pytest.fixture
def match_repo():
    return InMemoryMatchRepository()


@pytest.fixture
def lease_repo():
    return InMemoryLeaseRepository()


@pytest.fixture
def directory():
    """Directory with one landlord, one tenant and one property"""
    directory = InMemoryDirectory()
    directory.add_user(LANDLORD_ID, role="LANDLORD")
    directory.add_user(TENANT_ID, first_name="Ana")
    directory.add_property(PROPERTY_ID, title="Two rooms near the park", price=Decimal("500"), number_of_rooms=2)
    return directory


@pytest.fixture
def event_handler():
    return RecordingEventHandler()


@pytest.fixture
def publisher(event_handler):
    return WorkflowEventPublisher([event_handler])


@pytest.fixture
def match_service(match_repo, directory):
    return MatchService(matches=match_repo, directory=directory, like_score=10.0, pass_score=-20.0)


@pytest.fixture
def workflow_service(match_repo, lease_repo, publisher):
    return RentalWorkflowService(matches=match_repo, leases=lease_repo, publisher=publisher, db=NoTransactionDB())


@pytest.fixture
def activation_service(match_repo, lease_repo, publisher):
    return LeaseActivationService(matches=match_repo, leases=lease_repo, publisher=publisher, db=NoTransactionDB())


@pytest.fixture
def ranker():
    return FeedRanker(
        visibility_threshold=0.0, shuffle_min_size=10, shuffle_start=4, shuffle_step=5, rng=random.Random(42)
    )


@pytest.fixture
def feed_service(match_repo, lease_repo, directory, ranker):
    return FeedService(matches=match_repo, leases=lease_repo, directory=directory, ranker=ranker)


@pytest.fixture
def auth_headers():
    """Build bearer headers for a user id"""

    def _headers(user_id: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token({'user_id': user_id})}"}

    return _headers
