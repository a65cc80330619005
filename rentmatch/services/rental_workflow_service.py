"""
Rental workflow on top of a confirmed match.

    MATCHED -> VIEWING_REQUESTED -> VIEWING_SCHEDULED -> OFFER_PENDING -> RENTED

Either party proposes a viewing (and may re-propose while it is pending),
either party accepts it, the landlord sends the rent proposal, and a
confirmed payment activates the lease (see lease_activation_service).
A rejected, cancelled or expired proposal sends the match back to
VIEWING_SCHEDULED so the landlord can propose new terms.

The match is written before its lease. Without transactions a failed lease
write puts the match back to the status it had.
"""

import logging
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Iterable, Optional

from rentmatch.core.config import settings
from rentmatch.db.lease_repository import LeaseRepository
from rentmatch.db.match_repository import MatchRepository
from rentmatch.db.mongodb import MongoDB, mongodb
from rentmatch.exceptions import (
    AuthorizationError,
    ConcurrentModificationError,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
)
from rentmatch.models.lease_agreement import LeaseAgreement, LeaseWorkflowResult
from rentmatch.models.match import Match
from rentmatch.models.status_enums import Currency, LeaseStatus, MatchStatus, WorkflowEventType
from rentmatch.models.workflow_event import WorkflowEvent
from rentmatch.services import get_event_publisher
from rentmatch.services.notification_service import WorkflowEventPublisher

logger = logging.getLogger(__name__)

# Manual resolutions of a pending proposal
RESOLVED_LEASE_STATUSES = {LeaseStatus.REJECTED, LeaseStatus.CANCELLED, LeaseStatus.EXPIRED}


def require_status(match: Match, allowed: Iterable[MatchStatus], action: str) -> None:
    """Raise ConflictError unless the match is in one of the allowed statuses"""
    allowed = list(allowed)
    if match.status not in allowed:
        expected = " or ".join(s.value for s in allowed)
        logger.warning("Cannot %s on match %s in status %s", action, match.id, match.status.value)
        raise ConflictError(
            f"Cannot {action}. Current status: {match.status.value}. Must be {expected}.",
            current_status=match.status,
            expected_statuses=allowed,
        )


class RentalWorkflowService:
    """Viewing and rent proposal transitions of a match"""

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

    async def propose_viewing(self, match_id: str, proposer_id: str, viewing_date: datetime) -> Match:
        """Either party proposes (or re-proposes) a viewing date"""
        match = await self._get_match_for_party(match_id, proposer_id)
        require_status(match, [MatchStatus.MATCHED, MatchStatus.VIEWING_REQUESTED], "propose viewing")

        if viewing_date.tzinfo is None:
            viewing_date = viewing_date.replace(tzinfo=UTC)

        saved = await self.matches.save(
            match.model_copy(update={"status": MatchStatus.VIEWING_REQUESTED, "viewing_date": viewing_date})
        )
        logger.info("Viewing proposed on match %s by %s for %s", saved.id, proposer_id, viewing_date.isoformat())

        await self.publisher.publish(
            WorkflowEvent(
                type=WorkflowEventType.VIEWING_PROPOSED,
                match_id=saved.id,
                actor_id=proposer_id,
                payload={"date": viewing_date.isoformat()},
            )
        )
        return saved

    async def accept_viewing(self, match_id: str, accepter_id: str) -> Match:
        """Either party accepts the pending viewing"""
        # TODO: reject acceptance by the proposer once proposals record who made them
        match = await self._get_match_for_party(match_id, accepter_id)
        require_status(match, [MatchStatus.VIEWING_REQUESTED], "accept viewing")

        if match.viewing_date is None:
            raise ConflictError(
                "No viewing date has been proposed.",
                current_status=match.status,
                expected_statuses=[MatchStatus.VIEWING_REQUESTED],
            )

        saved = await self.matches.save(match.model_copy(update={"status": MatchStatus.VIEWING_SCHEDULED}))
        logger.info("Viewing on match %s confirmed by %s", saved.id, accepter_id)

        await self.publisher.publish(
            WorkflowEvent(
                type=WorkflowEventType.VIEWING_CONFIRMED,
                match_id=saved.id,
                actor_id=accepter_id,
                payload={"date": saved.viewing_date.isoformat()},
            )
        )
        return saved

    async def send_rent_proposal(
        self,
        match_id: str,
        landlord_id: str,
        monthly_price: Decimal,
        start_date: date,
        currency: Currency = Currency.EUR,
        end_date: Optional[date] = None,
    ) -> LeaseWorkflowResult:
        """The landlord offers lease terms after the viewing"""
        match = await self.matches.get(match_id)
        if match is None:
            raise NotFoundError("Match", match_id)
        if match.landlord_id != landlord_id:
            raise AuthorizationError("Only the landlord can send a rent proposal.")

        if await self.leases.find_pending_for_match(match.id) is not None:
            raise ConflictError(
                "A rent proposal is already pending for this match.",
                current_status=match.status,
                expected_statuses=[MatchStatus.VIEWING_SCHEDULED],
            )
        # OFFER_PENDING without a pending lease is a proposal whose lease write never landed
        resuming = match.status == MatchStatus.OFFER_PENDING
        if not resuming:
            require_status(match, [MatchStatus.VIEWING_SCHEDULED], "send rent proposal")

        monthly_price = Decimal(monthly_price)
        if monthly_price <= 0:
            raise InvalidRequestError("Monthly price must be positive")
        if end_date is not None and end_date <= start_date:
            raise InvalidRequestError("Lease end date must be after its start date")

        async with self.db.transaction() as session:
            saved = match
            if not resuming:
                saved = await self.matches.save(
                    match.model_copy(update={"status": MatchStatus.OFFER_PENDING}), session=session
                )
            try:
                lease = await self.leases.insert(
                    LeaseAgreement(
                        match_id=match.id,
                        property_id=match.property_id,
                        monthly_price=monthly_price,
                        currency=currency,
                        start_date=start_date,
                        end_date=end_date,
                    ),
                    session=session,
                )
            except Exception:
                if session is None and not resuming:
                    await self._restore_status(match.id, MatchStatus.OFFER_PENDING, match.status)
                raise

        logger.info(
            "Rent proposal %s on match %s: %s %s from %s",
            lease.id,
            saved.id,
            lease.monthly_price,
            lease.currency.value,
            lease.start_date.isoformat(),
        )

        await self.publisher.publish(
            WorkflowEvent(
                type=WorkflowEventType.RENT_PROPOSED,
                match_id=saved.id,
                actor_id=landlord_id,
                payload={
                    "lease_id": lease.id,
                    "monthly_price": str(lease.monthly_price),
                    "currency": lease.currency.value,
                    "start_date": lease.start_date.isoformat(),
                    "end_date": lease.end_date.isoformat() if lease.end_date else None,
                },
            )
        )
        return LeaseWorkflowResult(match=saved, lease=lease)

    async def update_lease_status(
        self, lease_id: str, actor_id: Optional[str], status: LeaseStatus
    ) -> LeaseWorkflowResult:
        """
        Close a pending rent proposal without payment.

        The tenant may reject it, either party may cancel it and only the
        scheduler (no actor) may expire it. ACTIVE is reachable through a
        confirmed payment only.
        """
        if status not in RESOLVED_LEASE_STATUSES:
            raise InvalidRequestError(f"A lease cannot be set to {status.value} manually")

        lease = await self.leases.get(lease_id)
        if lease is None:
            raise NotFoundError("Lease", lease_id)
        match = await self.matches.get(lease.match_id)
        if match is None:
            raise NotFoundError("Match", lease.match_id)

        self._check_resolution_actor(match, actor_id, status)

        if lease.status != LeaseStatus.PENDING:
            raise ConflictError(
                f"Lease is already {lease.status.value}.",
                current_status=lease.status,
                expected_statuses=[LeaseStatus.PENDING],
            )

        async with self.db.transaction() as session:
            previous_status = match.status
            if previous_status == MatchStatus.OFFER_PENDING:
                match = await self.matches.save(
                    match.model_copy(update={"status": MatchStatus.VIEWING_SCHEDULED}), session=session
                )
            try:
                lease = await self.leases.update_status(lease, status, session=session)
            except Exception:
                if session is None and previous_status == MatchStatus.OFFER_PENDING:
                    await self._restore_status(match.id, MatchStatus.VIEWING_SCHEDULED, previous_status)
                raise

        logger.info("Lease %s on match %s closed as %s", lease.id, match.id, status.value)

        await self.publisher.publish(
            WorkflowEvent(
                type=WorkflowEventType.RENT_PROPOSAL_RESOLVED,
                match_id=match.id,
                actor_id=actor_id,
                payload={"lease_id": lease.id, "status": status.value},
            )
        )
        return LeaseWorkflowResult(match=match, lease=lease)

    async def _restore_status(self, match_id: str, written: MatchStatus, previous: MatchStatus) -> None:
        """
        Put a match back to ``previous`` after its paired lease write failed.

        Only used without transactions. Gives up once someone else has moved
        the match away from ``written``.
        """
        for _ in range(settings.MATCH_WRITE_MAX_RETRIES):
            current = await self.matches.get(match_id)
            if current is None or current.status != written:
                return
            try:
                await self.matches.save(current.model_copy(update={"status": previous}))
            except ConcurrentModificationError:
                continue
            logger.warning("Match %s restored to %s after a failed lease write", match_id, previous.value)
            return
        logger.error("Could not restore match %s to %s", match_id, previous.value)

    async def _get_match_for_party(self, match_id: str, user_id: str) -> Match:
        match = await self.matches.get(match_id)
        if match is None:
            raise NotFoundError("Match", match_id)
        if not match.is_party(user_id):
            raise AuthorizationError("You are not part of this match")
        return match

    @staticmethod
    def _check_resolution_actor(match: Match, actor_id: Optional[str], status: LeaseStatus) -> None:
        if status == LeaseStatus.EXPIRED:
            if actor_id is not None:
                raise AuthorizationError("Rent proposals expire on schedule only")
            return
        if actor_id is None or not match.is_party(actor_id):
            raise AuthorizationError("You are not part of this match")
        if status == LeaseStatus.REJECTED and actor_id != match.tenant_id:
            raise AuthorizationError("Only the tenant can reject a rent proposal")
