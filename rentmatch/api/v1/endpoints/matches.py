from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from rentmatch.api.dependencies import get_current_user
from rentmatch.models.lease_agreement import LeaseWorkflowResult
from rentmatch.models.match import Match
from rentmatch.models.status_enums import ActorRole, Currency
from rentmatch.models.token import TokenData
from rentmatch.services.match_service import MatchService
from rentmatch.services.rental_workflow_service import RentalWorkflowService

router = APIRouter()


class SwipeRequest(BaseModel):
    role: ActorRole
    property_id: str
    liked: bool
    # Tenant id for landlord swipes, optional landlord id for tenant swipes
    counterparty_id: Optional[str] = None


class ViewingProposalRequest(BaseModel):
    viewing_date: datetime


class RentProposalRequest(BaseModel):
    monthly_price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    currency: Currency = Currency.EUR
    start_date: date
    end_date: Optional[date] = None


def get_match_service() -> MatchService:
    """Dependency to get MatchService"""
    return MatchService()


def get_rental_workflow_service() -> RentalWorkflowService:
    """Dependency to get RentalWorkflowService"""
    return RentalWorkflowService()


@router.post("/swipe", response_model=Match)
async def swipe(
    request: SwipeRequest,
    current_user: TokenData = Depends(get_current_user),
    service: MatchService = Depends(get_match_service),
):
    """Like or pass on a property (tenant) or on a tenant for a property (landlord)"""
    return await service.swipe(
        current_user.user_id,
        request.role,
        request.property_id,
        request.liked,
        counterparty_id=request.counterparty_id,
    )


@router.get("/landlord/pending", response_model=List[Match])
async def get_pending_tenants(
    current_user: TokenData = Depends(get_current_user),
    service: MatchService = Depends(get_match_service),
):
    """Tenants who liked one of the caller's properties"""
    return await service.get_pending_likes_for_landlord(current_user.user_id)


@router.get("/landlord/matches", response_model=List[Match])
async def get_confirmed_matches(
    current_user: TokenData = Depends(get_current_user),
    service: MatchService = Depends(get_match_service),
):
    return await service.get_confirmed_matches(current_user.user_id)


@router.get("/{match_id}", response_model=Match)
async def get_match(
    match_id: str,
    current_user: TokenData = Depends(get_current_user),
    service: MatchService = Depends(get_match_service),
):
    return await service.get_match(match_id, current_user.user_id)


@router.post("/{match_id}/viewing", response_model=Match)
async def propose_viewing(
    match_id: str,
    request: ViewingProposalRequest,
    current_user: TokenData = Depends(get_current_user),
    service: RentalWorkflowService = Depends(get_rental_workflow_service),
):
    """Propose or re-propose a viewing date"""
    return await service.propose_viewing(match_id, current_user.user_id, request.viewing_date)


@router.post("/{match_id}/viewing/accept", response_model=Match)
async def accept_viewing(
    match_id: str,
    current_user: TokenData = Depends(get_current_user),
    service: RentalWorkflowService = Depends(get_rental_workflow_service),
):
    return await service.accept_viewing(match_id, current_user.user_id)


@router.post("/{match_id}/rent-proposal", response_model=LeaseWorkflowResult)
async def send_rent_proposal(
    match_id: str,
    request: RentProposalRequest,
    current_user: TokenData = Depends(get_current_user),
    service: RentalWorkflowService = Depends(get_rental_workflow_service),
):
    """Landlord offers lease terms after a scheduled viewing"""
    return await service.send_rent_proposal(
        match_id,
        current_user.user_id,
        request.monthly_price,
        request.start_date,
        currency=request.currency,
        end_date=request.end_date,
    )
