from fastapi import APIRouter, Depends
from pydantic import BaseModel

from rentmatch.api.dependencies import get_current_user, verify_payment_callback
from rentmatch.models.lease_agreement import LeaseWorkflowResult
from rentmatch.models.status_enums import LeaseStatus
from rentmatch.models.token import TokenData
from rentmatch.services.lease_activation_service import LeaseActivationService
from rentmatch.services.rental_workflow_service import RentalWorkflowService

router = APIRouter()
payments_router = APIRouter()


class LeaseStatusUpdate(BaseModel):
    status: LeaseStatus


class PaymentConfirmation(BaseModel):
    lease_id: str


def get_rental_workflow_service() -> RentalWorkflowService:
    """Dependency to get RentalWorkflowService"""
    return RentalWorkflowService()


def get_lease_activation_service() -> LeaseActivationService:
    """Dependency to get LeaseActivationService"""
    return LeaseActivationService()


@router.patch("/{lease_id}/status", response_model=LeaseWorkflowResult)
async def update_lease_status(
    lease_id: str,
    update: LeaseStatusUpdate,
    current_user: TokenData = Depends(get_current_user),
    service: RentalWorkflowService = Depends(get_rental_workflow_service),
):
    """Reject or cancel a pending rent proposal"""
    return await service.update_lease_status(lease_id, current_user.user_id, update.status)


@payments_router.post(
    "/confirm", response_model=LeaseWorkflowResult, dependencies=[Depends(verify_payment_callback)]
)
async def confirm_payment(
    confirmation: PaymentConfirmation,
    service: LeaseActivationService = Depends(get_lease_activation_service),
):
    """Called by the payment collaborator once a charge for the lease is verified"""
    return await service.confirm_payment(confirmation.lease_id)
