from typing import List

from fastapi import APIRouter, Depends, Query, Response

from rentmatch.api.dependencies import get_current_user
from rentmatch.models.match import Match
from rentmatch.models.status_enums import ActorRole
from rentmatch.models.token import TokenData
from rentmatch.services.conversation_service import ConversationService

router = APIRouter()


def get_conversation_service() -> ConversationService:
    """Dependency to get ConversationService"""
    return ConversationService()


@router.get("/", response_model=List[Match])
async def list_conversations(
    role: ActorRole = Query(..., description="Side the caller is acting as"),
    current_user: TokenData = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
):
    """Engaged matches of the caller, most recently active first"""
    return await service.list_conversations(current_user.user_id, role)


@router.post("/{match_id}/activity", status_code=204)
async def record_chat_activity(
    match_id: str,
    current_user: TokenData = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
):
    await service.record_chat_activity(match_id, current_user.user_id)
    return Response(status_code=204)
