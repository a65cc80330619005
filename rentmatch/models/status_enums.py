"""
Centralized status enums for matches, leases and workflow events
"""

from enum import Enum


class MatchStatus(str, Enum):
    """Status of a (tenant, property) match"""
    # Matching phase
    TENANT_LIKED = "TENANT_LIKED"            # Tenant swiped right, landlord has not answered
    LANDLORD_LIKED = "LANDLORD_LIKED"        # Landlord invited, tenant has not answered
    MATCHED = "MATCHED"                      # Both sides liked

    # Rental workflow phase
    VIEWING_REQUESTED = "VIEWING_REQUESTED"  # Someone proposed a viewing date
    VIEWING_SCHEDULED = "VIEWING_SCHEDULED"  # The viewing was accepted
    OFFER_PENDING = "OFFER_PENDING"          # Landlord sent a rent proposal
    RENTED = "RENTED"                        # Tenant paid, lease is active

    # Decline states
    LANDLORD_DECLINED = "LANDLORD_DECLINED"
    TENANT_DECLINED = "TENANT_DECLINED"


# MATCHED and every status the rental workflow can reach from it
ENGAGED_STATUSES = frozenset(
    {
        MatchStatus.MATCHED,
        MatchStatus.VIEWING_REQUESTED,
        MatchStatus.VIEWING_SCHEDULED,
        MatchStatus.OFFER_PENDING,
        MatchStatus.RENTED,
    }
)


class LeaseStatus(str, Enum):
    """Status of a lease agreement"""
    PENDING = "PENDING"        # Landlord sent proposal, awaiting payment
    ACTIVE = "ACTIVE"          # Tenant paid, lease is active
    REJECTED = "REJECTED"      # Tenant declined the proposal
    EXPIRED = "EXPIRED"        # Proposal expired without action
    CANCELLED = "CANCELLED"    # Either party cancelled the proposal


class Currency(str, Enum):
    """Currencies accepted for lease agreements"""
    EUR = "EUR"
    USD = "USD"
    GBP = "GBP"
    RON = "RON"


class ActorRole(str, Enum):
    """Side of the marketplace an actor is acting for"""
    TENANT = "tenant"
    LANDLORD = "landlord"


class WorkflowEventType(str, Enum):
    """Events handed to the chat/notification collaborator"""
    VIEWING_PROPOSED = "VIEWING_PROPOSED"
    VIEWING_CONFIRMED = "VIEWING_CONFIRMED"
    RENT_PROPOSED = "RENT_PROPOSED"
    RENT_PROPOSAL_RESOLVED = "RENT_PROPOSAL_RESOLVED"
    PAYMENT_SUCCEEDED = "PAYMENT_SUCCEEDED"
