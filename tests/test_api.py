"""
API tests for the match, feed, lease and payment endpoints
"""

from datetime import datetime, UTC
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from rentmatch.api.v1.endpoints import conversations, feed, leases, matches
from rentmatch.core.config import settings
from rentmatch.main import app
from rentmatch.models.match import Match
from rentmatch.models.status_enums import LeaseStatus, MatchStatus
from rentmatch.services.conversation_service import ConversationService

TENANT_ID = "tenant-1"
LANDLORD_ID = "landlord-1"
PROPERTY_ID = "prop-1"
API = settings.API_V1_STR


@pytest.fixture
def client(match_service, workflow_service, activation_service, feed_service, match_repo):
    """Test client wired to in-memory services"""
    app.dependency_overrides[matches.get_match_service] = lambda: match_service
    app.dependency_overrides[matches.get_rental_workflow_service] = lambda: workflow_service
    app.dependency_overrides[leases.get_rental_workflow_service] = lambda: workflow_service
    app.dependency_overrides[leases.get_lease_activation_service] = lambda: activation_service
    app.dependency_overrides[feed.get_feed_service] = lambda: feed_service
    app.dependency_overrides[conversations.get_conversation_service] = lambda: ConversationService(match_repo)
    yield TestClient(app)
    app.dependency_overrides.clear()


async def seed_match(match_repo, status: MatchStatus) -> Match:
    return await match_repo.insert(
        Match(tenant_id=TENANT_ID, landlord_id=LANDLORD_ID, property_id=PROPERTY_ID, status=status, score=20)
    )


class TestAuthentication:
    def test_requires_bearer_token(self, client):
        response = client.get(f"{API}/feed/")

        assert response.status_code == 401

    def test_rejects_invalid_token(self, client):
        response = client.get(f"{API}/feed/", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401


class TestSwipeEndpoints:
    """POST /matches/swipe and the landlord lists"""

    def test_tenant_like(self, client, auth_headers):
        response = client.post(
            f"{API}/matches/swipe",
            json={"role": "tenant", "property_id": PROPERTY_ID, "liked": True},
            headers=auth_headers(TENANT_ID),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "TENANT_LIKED"
        assert data["score"] == 10
        assert data["landlord_id"] == LANDLORD_ID

    def test_mutual_like_then_landlord_lists(self, client, auth_headers):
        client.post(
            f"{API}/matches/swipe",
            json={"role": "tenant", "property_id": PROPERTY_ID, "liked": True},
            headers=auth_headers(TENANT_ID),
        )
        pending = client.get(f"{API}/matches/landlord/pending", headers=auth_headers(LANDLORD_ID))
        assert [m["tenant_id"] for m in pending.json()] == [TENANT_ID]

        response = client.post(
            f"{API}/matches/swipe",
            json={"role": "landlord", "property_id": PROPERTY_ID, "liked": True, "counterparty_id": TENANT_ID},
            headers=auth_headers(LANDLORD_ID),
        )

        assert response.json()["status"] == "MATCHED"
        confirmed = client.get(f"{API}/matches/landlord/matches", headers=auth_headers(LANDLORD_ID))
        assert [m["status"] for m in confirmed.json()] == ["MATCHED"]

    def test_unknown_property_is_404(self, client, auth_headers):
        response = client.post(
            f"{API}/matches/swipe",
            json={"role": "tenant", "property_id": "missing", "liked": True},
            headers=auth_headers(TENANT_ID),
        )

        assert response.status_code == 404
        assert response.json() == {"detail": "Property not found: missing", "error": "not_found"}

    def test_foreign_landlord_is_403(self, client, auth_headers):
        response = client.post(
            f"{API}/matches/swipe",
            json={"role": "landlord", "property_id": PROPERTY_ID, "liked": True, "counterparty_id": TENANT_ID},
            headers=auth_headers("landlord-2"),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    def test_self_interaction_is_400(self, client, auth_headers, directory):
        directory.add_user("owner-tenant")
        directory.add_property("own-flat", owner_id="owner-tenant")

        response = client.post(
            f"{API}/matches/swipe",
            json={"role": "tenant", "property_id": "own-flat", "liked": True},
            headers=auth_headers("owner-tenant"),
        )

        assert response.status_code == 400

    def test_invalid_role_is_422(self, client, auth_headers):
        response = client.post(
            f"{API}/matches/swipe",
            json={"role": "admin", "property_id": PROPERTY_ID, "liked": True},
            headers=auth_headers(TENANT_ID),
        )

        assert response.status_code == 422


class TestWorkflowEndpoints:
    """Viewing, rent proposal, lease status and payment"""

    @pytest.mark.asyncio
    async def test_propose_on_declined_match_is_409(self, client, auth_headers, match_repo):
        match = await seed_match(match_repo, MatchStatus.TENANT_DECLINED)

        response = client.post(
            f"{API}/matches/{match.id}/viewing",
            json={"viewing_date": "2026-03-15T14:00:00Z"},
            headers=auth_headers(TENANT_ID),
        )

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "conflict"
        assert body["current_status"] == "TENANT_DECLINED"
        assert body["expected_statuses"] == ["MATCHED", "VIEWING_REQUESTED"]

    @pytest.mark.asyncio
    async def test_full_workflow_over_http(self, client, auth_headers, match_repo, lease_repo, event_handler):
        match = await seed_match(match_repo, MatchStatus.MATCHED)

        response = client.post(
            f"{API}/matches/{match.id}/viewing",
            json={"viewing_date": "2026-03-15T14:00:00Z"},
            headers=auth_headers(TENANT_ID),
        )
        assert response.json()["status"] == "VIEWING_REQUESTED"

        response = client.post(f"{API}/matches/{match.id}/viewing/accept", headers=auth_headers(LANDLORD_ID))
        assert response.json()["status"] == "VIEWING_SCHEDULED"

        response = client.post(
            f"{API}/matches/{match.id}/rent-proposal",
            json={"monthly_price": "500", "currency": "EUR", "start_date": "2026-04-01"},
            headers=auth_headers(LANDLORD_ID),
        )
        assert response.status_code == 200
        lease_id = response.json()["lease"]["id"]
        assert response.json()["match"]["status"] == "OFFER_PENDING"

        response = client.post(
            f"{API}/payments/confirm",
            json={"lease_id": lease_id},
            headers={"X-Payment-Webhook-Secret": settings.PAYMENT_WEBHOOK_SECRET},
        )
        assert response.status_code == 200
        assert response.json()["match"]["status"] == "RENTED"
        assert response.json()["lease"]["status"] == "ACTIVE"
        assert lease_repo.docs[lease_id].status == LeaseStatus.ACTIVE
        assert match_repo.docs[match.id].viewing_date == datetime(2026, 3, 15, 14, 0, tzinfo=UTC)
        assert len(event_handler.events) == 4

    @pytest.mark.asyncio
    async def test_rent_proposal_by_tenant_is_403(self, client, auth_headers, match_repo):
        match = await seed_match(match_repo, MatchStatus.VIEWING_SCHEDULED)

        response = client.post(
            f"{API}/matches/{match.id}/rent-proposal",
            json={"monthly_price": "500", "start_date": "2026-04-01"},
            headers=auth_headers(TENANT_ID),
        )

        assert response.status_code == 403

    def test_non_positive_price_is_422(self, client, auth_headers):
        response = client.post(
            f"{API}/matches/match-1/rent-proposal",
            json={"monthly_price": "0", "start_date": "2026-04-01"},
            headers=auth_headers(LANDLORD_ID),
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_tenant_rejects_proposal(self, client, auth_headers, match_repo, workflow_service):
        match = await seed_match(match_repo, MatchStatus.VIEWING_SCHEDULED)
        proposal = await workflow_service.send_rent_proposal(
            match.id, LANDLORD_ID, Decimal("500"), datetime(2026, 4, 1).date()
        )

        response = client.patch(
            f"{API}/leases/{proposal.lease.id}/status",
            json={"status": "REJECTED"},
            headers=auth_headers(TENANT_ID),
        )

        assert response.status_code == 200
        assert response.json()["lease"]["status"] == "REJECTED"
        assert response.json()["match"]["status"] == "VIEWING_SCHEDULED"

    def test_payment_without_secret_is_401(self, client):
        response = client.post(f"{API}/payments/confirm", json={"lease_id": "lease-1"})

        assert response.status_code == 401

    def test_payment_with_wrong_secret_is_401(self, client):
        response = client.post(
            f"{API}/payments/confirm",
            json={"lease_id": "lease-1"},
            headers={"X-Payment-Webhook-Secret": "wrong"},
        )

        assert response.status_code == 401


class TestFeedAndConversationEndpoints:
    def test_tenant_feed(self, client, auth_headers):
        response = client.get(f"{API}/feed/", headers=auth_headers(TENANT_ID))

        assert response.status_code == 200
        data = response.json()
        assert [item["candidate_id"] for item in data] == [PROPERTY_ID]
        assert data[0]["total_score"] == 65
        assert data[0]["property"]["owner_id"] == LANDLORD_ID

    def test_landlord_feed_for_property(self, client, auth_headers):
        response = client.get(
            f"{API}/feed/",
            params={"role": "landlord", "property_id": PROPERTY_ID},
            headers=auth_headers(LANDLORD_ID),
        )

        assert response.status_code == 200
        data = response.json()
        assert [item["candidate_id"] for item in data] == [TENANT_ID]
        assert data[0]["tenant"]["first_name"] == "Ana"

    @pytest.mark.asyncio
    async def test_conversations(self, client, auth_headers, match_repo):
        match = await seed_match(match_repo, MatchStatus.MATCHED)

        response = client.get(f"{API}/conversations/", params={"role": "tenant"}, headers=auth_headers(TENANT_ID))
        assert [m["id"] for m in response.json()] == [match.id]

        response = client.post(f"{API}/conversations/{match.id}/activity", headers=auth_headers(LANDLORD_ID))
        assert response.status_code == 204

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
