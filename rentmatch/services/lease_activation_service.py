"""
Lease activation after the payment collaborator verified a charge.

Payment callbacks can be redelivered, so confirming a lease that is already
ACTIVE with its match RENTED is a no-op. A half-applied activation left by a
deployment without transactions is completed instead of rejected.
"""

import logging
from typing import Optional

from rentmatch.db.lease_repository import LeaseRepository
from rentmatch.db.match_repository import MatchRepository
from rentmatch.db.mongodb import MongoDB, mongodb
from rentmatch.exceptions import ConflictError, NotFoundError
from rentmatch.models.lease_agreement import LeaseWorkflowResult
from rentmatch.models.status_enums import LeaseStatus, MatchStatus, WorkflowEventType
from rentmatch.models.workflow_event import WorkflowEvent
from rentmatch.services import get_event_publisher
from rentmatch.services.notification_service import WorkflowEventPublisher

logger = logging.getLogger(__name__)


class LeaseActivationService:
    """Turns a confirmed payment into an active lease and a rented match"""

    def __init__(
        self,
        matches: Optional[MatchRepository] = None,
        leases: Optional[LeaseRepository] = None,
        publisher: Optional[WorkflowEventPublisher] = None,
        db: Optional[MongoDB] = None,
    ):
        self.matches = matches or MatchRepository()
        self.leases = leases or LeaseRepository()
        self.publisher = publisher or get_event_publisher()
        self.db = db or mongodb

    async def confirm_payment(self, lease_id: str) -> LeaseWorkflowResult:
        lease = await self.leases.get(lease_id)
        if lease is None:
            raise NotFoundError("Lease", lease_id)
        match = await self.matches.get(lease.match_id)
        if match is None:
            raise NotFoundError("Match", lease.match_id)

        lease_active = lease.status == LeaseStatus.ACTIVE
        match_rented = match.status == MatchStatus.RENTED

        if lease_active and match_rented:
            logger.info("Payment for lease %s already applied, ignoring redelivery", lease.id)
            return LeaseWorkflowResult(match=match, lease=lease, changed=False)

        if not lease_active and lease.status != LeaseStatus.PENDING:
            raise ConflictError(
                f"Cannot activate lease. Current status: {lease.status.value}. Must be PENDING.",
                current_status=lease.status,
                expected_statuses=[LeaseStatus.PENDING],
            )
        if not match_rented and match.status != MatchStatus.OFFER_PENDING:
            raise ConflictError(
                f"Cannot activate lease. Current status: {match.status.value}. Must be OFFER_PENDING.",
                current_status=match.status,
                expected_statuses=[MatchStatus.OFFER_PENDING],
            )

        async with self.db.transaction() as session:
            if not lease_active:
                lease = await self.leases.update_status(lease, LeaseStatus.ACTIVE, session=session)
            if not match_rented:
                match = await self.matches.save(match.model_copy(update={"status": MatchStatus.RENTED}), session=session)

        logger.info("Lease %s is ACTIVE, match %s is RENTED", lease.id, match.id)

        await self.publisher.publish(
            WorkflowEvent(
                type=WorkflowEventType.PAYMENT_SUCCEEDED,
                match_id=match.id,
                payload={
                    "lease_id": lease.id,
                    "monthly_price": str(lease.monthly_price),
                    "currency": lease.currency.value,
                },
            )
        )
        return LeaseWorkflowResult(match=match, lease=lease)
